"""
Pipeline Tracker - outreach funnel state and statistics.

Wraps a PipelineStore with the operations the outside world calls:
- snapshot of a founder's pipeline plus counts
- single, bulk and webhook-driven status updates
- funnel rates (response / booking / conversion)

Usage:
    from workflows.pipeline_tracker import PipelineTracker

    tracker = PipelineTracker(store)
    await tracker.update_status(founder_id="f1", investor_email="a@b.vc", status="contacted")
    rates = await tracker.get_stats("f1")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from storage.pipeline_store import (
    DEFAULT_FOUNDER_ID,
    PipelineEntry,
    PipelineStatus,
    PipelineStore,
)

logger = logging.getLogger(__name__)


# =============================================================================
# AGGREGATION
# =============================================================================

def _status_of(entry: Any) -> str:
    """Status string for a PipelineEntry or a plain dict."""
    status = entry.status if isinstance(entry, PipelineEntry) else (entry or {}).get("status")
    if isinstance(status, PipelineStatus):
        return status.value
    return str(status or PipelineStatus.NOT_CONTACTED.value)


def _rate(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 100, 1)


def compute_stats(entries: Iterable[Any]) -> Dict[str, int]:
    """Count entries per known status."""
    statuses = [_status_of(e) for e in entries]
    return {
        "total": len(statuses),
        "contacted": statuses.count(PipelineStatus.CONTACTED.value),
        "replied": statuses.count(PipelineStatus.REPLIED.value),
        "booked": statuses.count(PipelineStatus.BOOKED.value),
        "not_interested": statuses.count(PipelineStatus.NOT_INTERESTED.value),
    }


def compute_rates(entries: Iterable[Any]) -> Dict[str, Any]:
    """
    Funnel counts and percentage rates.

    contacted = anything past not_contacted
    replied   = replied or booked (a booking implies a reply)
    Rates are percentages rounded to one decimal, 0 when undefined.
    """
    statuses = [_status_of(e) for e in entries]
    contacted = sum(1 for s in statuses if s != PipelineStatus.NOT_CONTACTED.value)
    replied = sum(
        1 for s in statuses
        if s in (PipelineStatus.REPLIED.value, PipelineStatus.BOOKED.value)
    )
    booked = statuses.count(PipelineStatus.BOOKED.value)

    return {
        "total": len(statuses),
        "contacted": contacted,
        "replied": replied,
        "booked": booked,
        "response_rate": _rate(replied, contacted),
        "booking_rate": _rate(booked, replied),
        "conversion_rate": _rate(booked, contacted),
    }


def stats_to_wire(stats: Mapping[str, Any]) -> Dict[str, Any]:
    """
    camelCase view of compute_stats / compute_rates output.

    Examples:
      - {"not_interested": 1}   -> {"notInterested": 1}
      - {"response_rate": 50.0} -> {"responseRate": 50.0}
    """
    return {_camel(key): value for key, value in stats.items()}


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class PipelineSnapshot:
    """A founder's pipeline at one point in time."""
    investors: List[PipelineEntry]
    stats: Dict[str, int]
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "investors": [e.to_dict() for e in self.investors],
            "stats": dict(self.stats),
            "last_updated": self.last_updated.isoformat(),
        }

    def to_wire(self) -> Dict[str, Any]:
        return {
            "investors": [e.to_wire() for e in self.investors],
            "stats": stats_to_wire(self.stats),
            "lastUpdated": self.last_updated.isoformat(),
        }


@dataclass
class BulkUpdateResult:
    updated: int
    results: List[PipelineEntry]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "updated": self.updated,
            "results": [
                {
                    "investor_id": e.investor_id,
                    "status": e.status.value,
                    "timestamp": e.last_updated.isoformat(),
                }
                for e in self.results
            ],
        }


# =============================================================================
# TRACKER
# =============================================================================

class PipelineTracker:
    """Founder-facing pipeline operations over a PipelineStore."""

    CALENDLY_BOOKED = "invitee.created"
    CALENDLY_CANCELED = "invitee.canceled"
    EMAIL_REPLIED = "replied"

    def __init__(self, store: PipelineStore):
        self.store = store

    async def get_pipeline_data(self, founder_id: Optional[str]) -> PipelineSnapshot:
        entries = await self.store.get(founder_id or DEFAULT_FOUNDER_ID)
        return PipelineSnapshot(investors=entries, stats=compute_stats(entries))

    async def get_stats(self, founder_id: Optional[str]) -> Dict[str, Any]:
        entries = await self.store.get(founder_id or DEFAULT_FOUNDER_ID)
        return compute_rates(entries)

    async def investors_by_status(self, founder_id: Optional[str], status: Any) -> List[PipelineEntry]:
        return await self.store.query_by_status(founder_id or DEFAULT_FOUNDER_ID, status)

    async def update_status(
        self,
        founder_id: Optional[str] = None,
        investor_id: Optional[str] = None,
        investor_email: Optional[str] = None,
        status: Any = None,
        metadata: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> PipelineEntry:
        return await self.store.upsert(
            founder_id=founder_id,
            investor_id=investor_id,
            investor_email=investor_email,
            status=status,
            metadata=metadata,
            timestamp=timestamp,
        )

    async def bulk_update(
        self,
        updates: Iterable[Mapping[str, Any]],
        founder_id: Optional[str] = None,
    ) -> BulkUpdateResult:
        """
        Apply updates one at a time, in order.

        Each update is awaited before the next starts. The first failure
        propagates; updates already applied stay applied.
        """
        results: List[PipelineEntry] = []
        for update in updates:
            entry = await self.update_status(
                founder_id=founder_id,
                investor_id=update.get("investor_id") or update.get("investorId"),
                investor_email=update.get("investor_email") or update.get("investorEmail"),
                status=update.get("status"),
                metadata=update.get("metadata"),
                timestamp=update.get("timestamp"),
            )
            results.append(entry)

        logger.info(f"Bulk pipeline update: {len(results)} entries for founder={founder_id or DEFAULT_FOUNDER_ID}")
        return BulkUpdateResult(updated=len(results), results=results)

    async def clear(self, founder_id: Optional[str] = None) -> None:
        await self.store.clear(founder_id)

    # =========================================================================
    # WEBHOOKS
    # =========================================================================

    async def handle_calendly_event(
        self,
        event: str,
        payload: Mapping[str, Any],
        founder_id: Optional[str] = None,
    ) -> Optional[PipelineEntry]:
        """
        Map a Calendly webhook onto the pipeline, keyed by invitee email.

        invitee.created -> booked, invitee.canceled -> contacted. Other
        events are ignored and return None.
        """
        if event not in (self.CALENDLY_BOOKED, self.CALENDLY_CANCELED):
            logger.debug(f"Ignoring Calendly event {event}")
            return None

        scheduled = payload.get("event") or {}
        email = payload.get("email")

        if event == self.CALENDLY_BOOKED:
            status = PipelineStatus.BOOKED
            metadata = {
                "meetingTime": scheduled.get("start_time"),
                "calendlyEventId": scheduled.get("uuid"),
            }
        else:
            status = PipelineStatus.CONTACTED
            metadata = {
                "cancelledAt": datetime.now(timezone.utc).isoformat(),
                "calendlyEventId": scheduled.get("uuid"),
            }

        return await self.update_status(
            founder_id=founder_id,
            investor_email=email,
            status=status,
            metadata=metadata,
        )

    async def handle_email_event(
        self,
        event: str,
        investor_id: Optional[str] = None,
        investor_email: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        founder_id: Optional[str] = None,
    ) -> Optional[PipelineEntry]:
        """Record a reply; opens, clicks and other events are ignored."""
        if event != self.EMAIL_REPLIED:
            logger.debug(f"Ignoring email event {event}")
            return None

        return await self.update_status(
            founder_id=founder_id,
            investor_id=investor_id,
            investor_email=investor_email,
            status=PipelineStatus.REPLIED,
            metadata=metadata,
        )
