"""
Pipeline Storage Layer for the Investor Matching Engine

Tracks each investor's outreach status per founder:
- One entry per (founder_id, investor_id)
- Merge-upserts: fields survive unless overwritten
- Durable SQLite backend, or an in-memory map when no database is configured

The backend is chosen once, when the store is opened. Callers never branch
on which one is active, and a running store never switches backends.

Tables (SQLite backend):
  - pipeline_entries: one row per founder/investor pair, metadata as JSON
  - pipeline_schema_migrations: applied schema versions

Usage:
    store = await open_pipeline_store(EngineConfig.from_env())

    entry = await store.upsert(
        "founder-1",
        investor_email="jane@acme.vc",
        status="contacted",
        metadata={"campaign": "spring"},
    )
    replied = await store.query_by_status("founder-1", "replied")
"""

from __future__ import annotations

import abc
import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from copy import deepcopy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import aiosqlite

logger = logging.getLogger(__name__)


DEFAULT_FOUNDER_ID = "default"


# =============================================================================
# SCHEMA VERSION
# =============================================================================

PIPELINE_SCHEMA_VERSION = 1

PIPELINE_MIGRATIONS = {
    1: """
    CREATE TABLE IF NOT EXISTS pipeline_entries (
        founder_id TEXT NOT NULL,
        investor_id TEXT NOT NULL,
        email TEXT,
        status TEXT NOT NULL DEFAULT 'not_contacted',
        metadata TEXT,  -- JSON object, merged key-wise on upsert
        created_at TEXT NOT NULL,
        last_updated TEXT NOT NULL,

        PRIMARY KEY (founder_id, investor_id)
    );

    CREATE INDEX IF NOT EXISTS idx_pipeline_founder_status
        ON pipeline_entries(founder_id, status);

    CREATE TABLE IF NOT EXISTS pipeline_schema_migrations (
        version INTEGER PRIMARY KEY,
        applied_at TEXT NOT NULL,
        description TEXT
    );
    """
}


# =============================================================================
# ENUMS / ERRORS
# =============================================================================

class PipelineStatus(str, Enum):
    """Outreach funnel status."""
    NOT_CONTACTED = "not_contacted"
    CONTACTED = "contacted"
    REPLIED = "replied"
    BOOKED = "booked"
    NOT_INTERESTED = "not_interested"


class BackingStoreError(RuntimeError):
    """Raised when the durable store is unreachable or rejects an operation."""


def resolve_status(status: Any) -> PipelineStatus:
    """Validate a status value, raising ValueError for unknown statuses."""
    if isinstance(status, PipelineStatus):
        return status
    try:
        return PipelineStatus(str(status).strip().lower())
    except ValueError:
        valid = ", ".join(s.value for s in PipelineStatus)
        raise ValueError(f"Unknown pipeline status '{status}'. Expected one of: {valid}") from None


def resolve_investor_id(
    investor_id: Optional[str] = None,
    investor_email: Optional[str] = None,
) -> str:
    """Explicit id, else email, else a fresh uuid."""
    if investor_id:
        return str(investor_id)
    if investor_email:
        return str(investor_email)
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class PipelineEntry:
    """One investor's outreach state for one founder."""
    founder_id: str
    investor_id: str
    status: PipelineStatus = PipelineStatus.NOT_CONTACTED
    email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)
    last_updated: datetime = field(default_factory=_utcnow)

    def copy(self) -> PipelineEntry:
        """Return a copy whose metadata is independent of this one."""
        return replace(self, metadata=deepcopy(self.metadata))

    def merged(
        self,
        status: Optional[PipelineStatus],
        email: Optional[str],
        metadata: Optional[Dict[str, Any]],
        timestamp: datetime,
    ) -> PipelineEntry:
        """Return a new entry with the update applied over this one."""
        merged_meta = dict(self.metadata)
        if metadata:
            merged_meta.update(metadata)
        return PipelineEntry(
            founder_id=self.founder_id,
            investor_id=self.investor_id,
            status=status or self.status,
            email=email or self.email,
            metadata=merged_meta,
            created_at=self.created_at,
            last_updated=timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into one dict; metadata keys sit beside the core fields."""
        out = dict(self.metadata)
        out.update({
            "founder_id": self.founder_id,
            "investor_id": self.investor_id,
            "email": self.email,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "last_updated": self.last_updated.isoformat(),
        })
        return out

    def to_wire(self) -> Dict[str, Any]:
        """Same as to_dict, with camelCase core keys (investorId, lastUpdated, ...)."""
        out = dict(self.metadata)
        out.update({
            "founderId": self.founder_id,
            "investorId": self.investor_id,
            "email": self.email,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "lastUpdated": self.last_updated.isoformat(),
        })
        return out


# =============================================================================
# STORE INTERFACE
# =============================================================================

class PipelineStore(abc.ABC):
    """Key-value store of PipelineEntry, partitioned by founder."""

    backend_name = "abstract"

    async def initialize(self) -> None:
        """Open connections / apply migrations. No-op by default."""

    async def close(self) -> None:
        """Release resources. No-op by default."""

    @abc.abstractmethod
    async def get(self, founder_id: Optional[str]) -> List[PipelineEntry]:
        """All entries for a founder, empty when the founder is unknown."""

    @abc.abstractmethod
    async def query_by_status(
        self,
        founder_id: Optional[str],
        status: Any,
    ) -> List[PipelineEntry]:
        """Entries for a founder whose status equals ``status``."""

    @abc.abstractmethod
    async def clear(self, founder_id: Optional[str] = None) -> None:
        """Delete one founder's entries, or everything when founder_id is None."""

    @abc.abstractmethod
    async def _write(
        self,
        founder_id: str,
        investor_id: str,
        update: _Update,
    ) -> PipelineEntry:
        """Merge ``update`` into the stored entry (creating it) and return it."""

    async def upsert(
        self,
        founder_id: Optional[str] = None,
        investor_id: Optional[str] = None,
        investor_email: Optional[str] = None,
        status: Any = None,
        metadata: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime | str] = None,
    ) -> PipelineEntry:
        """
        Merge an update into the entry for (founder, investor), creating it
        if absent.

        Args:
            founder_id: Founder partition (defaults to "default")
            investor_id: Explicit investor key; wins over investor_email
            investor_email: Used as the key when no investor_id is given
            status: New status; None keeps the current one
            metadata: Extra fields merged verbatim
            timestamp: Event time (defaults to now)

        Returns:
            The resulting entry
        """
        fid = founder_id or DEFAULT_FOUNDER_ID
        iid = resolve_investor_id(investor_id, investor_email)
        update = _Update(
            status=resolve_status(status) if status is not None else None,
            email=investor_email or None,
            metadata=deepcopy(metadata) if metadata else {},
            timestamp=_as_utc(timestamp) if timestamp else _utcnow(),
        )

        entry = await self._write(fid, iid, update)

        logger.info(
            f"Pipeline updated: founder={fid} investor={iid} "
            f"status={entry.status.value} at={entry.last_updated.isoformat()}"
        )
        return entry


@dataclass
class _Update:
    status: Optional[PipelineStatus]
    email: Optional[str]
    metadata: Dict[str, Any]
    timestamp: datetime


def _as_utc(ts: datetime | str) -> datetime:
    if isinstance(ts, str):
        # fromisoformat rejects a trailing "Z" before Python 3.11
        ts = datetime.fromisoformat(ts.strip().replace("Z", "+00:00"))
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


# =============================================================================
# IN-MEMORY BACKEND
# =============================================================================

class InMemoryPipelineStore(PipelineStore):
    """Process-local map of founder_id -> investor_id -> entry."""

    backend_name = "memory"

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, PipelineEntry]] = {}

    async def get(self, founder_id: Optional[str]) -> List[PipelineEntry]:
        entries = self._data.get(founder_id or DEFAULT_FOUNDER_ID, {})
        return [entry.copy() for entry in entries.values()]

    async def query_by_status(
        self,
        founder_id: Optional[str],
        status: Any,
    ) -> List[PipelineEntry]:
        wanted = resolve_status(status)
        return [e for e in await self.get(founder_id) if e.status == wanted]

    async def clear(self, founder_id: Optional[str] = None) -> None:
        if founder_id:
            self._data.pop(founder_id, None)
        else:
            self._data.clear()

    async def _write(
        self,
        founder_id: str,
        investor_id: str,
        update: _Update,
    ) -> PipelineEntry:
        partition = self._data.setdefault(founder_id, {})
        existing = partition.get(investor_id) or PipelineEntry(
            founder_id=founder_id,
            investor_id=investor_id,
            created_at=update.timestamp,
            last_updated=update.timestamp,
        )
        entry = existing.merged(update.status, update.email, update.metadata, update.timestamp)
        partition[investor_id] = entry
        return entry.copy()


# =============================================================================
# SQLITE BACKEND
# =============================================================================

class SQLitePipelineStore(PipelineStore):
    """
    Async SQLite storage for pipeline entries.

    Every database failure after ``initialize`` surfaces as
    BackingStoreError; nothing is silently redirected elsewhere.
    """

    backend_name = "sqlite"

    def __init__(self, db_path: str | Path = "pipeline.db"):
        self.db_path = Path(db_path)
        self._db: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the connection and apply migrations."""
        from storage.sqlite_pragmas import apply_sqlite_pragmas

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(str(self.db_path))
            await apply_sqlite_pragmas(self._db)
            await self._apply_migrations()
        except (aiosqlite.Error, OSError) as exc:
            await self.close()
            raise BackingStoreError(f"Cannot open pipeline database {self.db_path}: {exc}") from exc

        logger.info(f"SQLitePipelineStore initialized: {self.db_path}")

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    def _conn(self) -> aiosqlite.Connection:
        if not self._db:
            raise BackingStoreError("Pipeline database not initialized")
        return self._db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Serialized write transaction; rolls back on any error."""
        conn = self._conn()
        async with self._lock:
            try:
                await conn.execute("BEGIN")
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    async def _apply_migrations(self) -> None:
        conn = self._conn()
        try:
            cursor = await conn.execute("SELECT MAX(version) FROM pipeline_schema_migrations")
            row = await cursor.fetchone()
            current_version = row[0] if row and row[0] else 0
        except aiosqlite.OperationalError:
            current_version = 0

        for version in sorted(PIPELINE_MIGRATIONS):
            if version <= current_version:
                continue

            logger.info(f"Applying pipeline migration v{version}...")
            await conn.executescript(PIPELINE_MIGRATIONS[version])
            await conn.execute(
                """
                INSERT INTO pipeline_schema_migrations (version, applied_at, description)
                VALUES (?, ?, ?)
                """,
                (version, _utcnow().isoformat(), f"Pipeline schema version {version}"),
            )
            await conn.commit()

    # =========================================================================
    # READS
    # =========================================================================

    async def get(self, founder_id: Optional[str]) -> List[PipelineEntry]:
        return await self._select(
            "SELECT * FROM pipeline_entries WHERE founder_id = ? ORDER BY created_at, investor_id",
            (founder_id or DEFAULT_FOUNDER_ID,),
        )

    async def query_by_status(
        self,
        founder_id: Optional[str],
        status: Any,
    ) -> List[PipelineEntry]:
        wanted = resolve_status(status)
        return await self._select(
            """
            SELECT * FROM pipeline_entries
            WHERE founder_id = ? AND status = ?
            ORDER BY created_at, investor_id
            """,
            (founder_id or DEFAULT_FOUNDER_ID, wanted.value),
        )

    async def _select(self, sql: str, params: tuple) -> List[PipelineEntry]:
        conn = self._conn()
        try:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise BackingStoreError(f"Pipeline read failed: {exc}") from exc
        return [self._row_to_entry(row) for row in rows]

    # =========================================================================
    # WRITES
    # =========================================================================

    async def clear(self, founder_id: Optional[str] = None) -> None:
        try:
            async with self.transaction() as conn:
                if founder_id:
                    await conn.execute(
                        "DELETE FROM pipeline_entries WHERE founder_id = ?", (founder_id,)
                    )
                else:
                    await conn.execute("DELETE FROM pipeline_entries")
        except aiosqlite.Error as exc:
            raise BackingStoreError(f"Pipeline clear failed: {exc}") from exc

    async def _write(
        self,
        founder_id: str,
        investor_id: str,
        update: _Update,
    ) -> PipelineEntry:
        try:
            async with self.transaction() as conn:
                cursor = await conn.execute(
                    "SELECT * FROM pipeline_entries WHERE founder_id = ? AND investor_id = ?",
                    (founder_id, investor_id),
                )
                row = await cursor.fetchone()
                existing = self._row_to_entry(row) if row else PipelineEntry(
                    founder_id=founder_id,
                    investor_id=investor_id,
                    created_at=update.timestamp,
                    last_updated=update.timestamp,
                )
                entry = existing.merged(
                    update.status, update.email, update.metadata, update.timestamp
                )

                await conn.execute(
                    """
                    INSERT INTO pipeline_entries (
                        founder_id, investor_id, email, status, metadata,
                        created_at, last_updated
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(founder_id, investor_id) DO UPDATE SET
                        email = excluded.email,
                        status = excluded.status,
                        metadata = excluded.metadata,
                        last_updated = excluded.last_updated
                    """,
                    (
                        entry.founder_id,
                        entry.investor_id,
                        entry.email,
                        entry.status.value,
                        json.dumps(entry.metadata, default=str) if entry.metadata else None,
                        entry.created_at.isoformat(),
                        entry.last_updated.isoformat(),
                    ),
                )
        except aiosqlite.Error as exc:
            raise BackingStoreError(f"Pipeline write failed: {exc}") from exc

        return entry

    def _row_to_entry(self, row: tuple) -> PipelineEntry:
        """Convert database row to PipelineEntry."""
        columns = [
            "founder_id", "investor_id", "email", "status", "metadata",
            "created_at", "last_updated",
        ]
        data = dict(zip(columns, row))

        return PipelineEntry(
            founder_id=data["founder_id"],
            investor_id=data["investor_id"],
            email=data["email"],
            status=PipelineStatus(data["status"]),
            metadata=json.loads(data["metadata"]) if data["metadata"] else {},
            created_at=datetime.fromisoformat(data["created_at"]),
            last_updated=datetime.fromisoformat(data["last_updated"]),
        )

    async def get_stats(self) -> Dict[str, Any]:
        """Row counts per status across all founders."""
        conn = self._conn()
        try:
            cursor = await conn.execute("SELECT COUNT(DISTINCT founder_id) FROM pipeline_entries")
            founders = (await cursor.fetchone())[0]
            cursor = await conn.execute(
                "SELECT status, COUNT(*) FROM pipeline_entries GROUP BY status"
            )
            by_status = dict(await cursor.fetchall())
        except aiosqlite.Error as exc:
            raise BackingStoreError(f"Pipeline stats query failed: {exc}") from exc

        return {
            "founders": founders,
            "total_entries": sum(by_status.values()),
            "by_status": by_status,
        }


# =============================================================================
# FACTORY
# =============================================================================

async def open_pipeline_store(config: Any = None) -> PipelineStore:
    """
    Build and initialize the store selected by configuration.

    A configured ``pipeline_db_path`` selects SQLite. If that database cannot
    be opened now, the in-memory store is used for this process's lifetime.
    """
    db_path = getattr(config, "pipeline_db_path", None)
    if db_path:
        store = SQLitePipelineStore(db_path)
        try:
            await store.initialize()
            return store
        except BackingStoreError as exc:
            logger.warning(f"{exc}; falling back to in-memory pipeline store")

    memory = InMemoryPipelineStore()
    await memory.initialize()
    logger.info("Using in-memory pipeline store")
    return memory


@asynccontextmanager
async def pipeline_store(config: Any = None) -> AsyncIterator[PipelineStore]:
    """Context manager for PipelineStore."""
    store = await open_pipeline_store(config)
    try:
        yield store
    finally:
        await store.close()
