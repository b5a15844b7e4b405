"""
Engine configuration, read from the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from matching.dataset import DEFAULT_DATASET_PATH, DEFAULT_FALLBACK_PATH

logger = logging.getLogger(__name__)


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}")
        return None


@dataclass
class EngineConfig:
    """Configuration for investor sourcing and pipeline tracking"""

    # Dataset
    dataset_path: str = str(DEFAULT_DATASET_PATH)
    dataset_fallback_path: Optional[str] = str(DEFAULT_FALLBACK_PATH)

    # Pipeline storage (None = in-memory)
    pipeline_db_path: Optional[str] = None

    # Enrichment (None = unseeded)
    enrichment_seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load configuration from environment variables"""
        return cls(
            dataset_path=os.getenv("INVESTOR_DATASET_PATH", str(DEFAULT_DATASET_PATH)),
            dataset_fallback_path=os.getenv(
                "INVESTOR_DATASET_FALLBACK_PATH", str(DEFAULT_FALLBACK_PATH)
            ) or None,
            pipeline_db_path=os.getenv("PIPELINE_DB_PATH") or None,
            enrichment_seed=_optional_int("ENRICHMENT_SEED"),
        )
