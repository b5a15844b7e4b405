"""
Static investor dataset provider.

Loads the investor JSON array once and hands out the cached, immutable
snapshot on every later call. Construct one provider per process (or per
test) and inject it where it is needed.

Usage:
    dataset = InvestorDataset("data/investors_static.json", "data/investors.json")
    investors = dataset.load()
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from matching.models import InvestorRecord, investors_from_dicts

logger = logging.getLogger(__name__)


DEFAULT_DATASET_PATH = Path("data") / "investors_static.json"
DEFAULT_FALLBACK_PATH = Path("data") / "investors.json"


class DatasetLoadError(RuntimeError):
    """Raised when the dataset file is missing, unreadable or not JSON."""


class InvestorDataset:
    """
    Lazily-loaded, cached investor dataset.

    The preferred path is read when it exists, otherwise the fallback path.
    The first successful read is cached for the provider's lifetime. A
    failed read is logged and yields an empty tuple; it is not cached, so a
    later call may still succeed.
    """

    def __init__(
        self,
        path: str | Path = DEFAULT_DATASET_PATH,
        fallback_path: Optional[str | Path] = DEFAULT_FALLBACK_PATH,
    ):
        self.path = Path(path)
        self.fallback_path = Path(fallback_path) if fallback_path else None
        self._cache: Optional[Tuple[InvestorRecord, ...]] = None

    @classmethod
    def from_records(cls, rows: Iterable[Any]) -> InvestorDataset:
        """Build a provider pre-populated from in-memory rows (dicts or records)."""
        dataset = cls(path=Path("<memory>"), fallback_path=None)
        records: List[InvestorRecord] = []
        for row in rows:
            if isinstance(row, InvestorRecord):
                records.append(row.copy())
            elif isinstance(row, dict):
                records.append(InvestorRecord.from_dict(row))
        dataset._cache = tuple(records)
        return dataset

    @property
    def is_loaded(self) -> bool:
        return self._cache is not None

    def load(self) -> Tuple[InvestorRecord, ...]:
        """Return the cached dataset, reading it on first use."""
        if self._cache is not None:
            return self._cache

        try:
            rows = self._read()
        except DatasetLoadError as exc:
            logger.error(f"Failed to load static investors dataset: {exc}")
            return ()

        records = investors_from_dicts(rows)
        skipped = len(rows) - len(records)
        if skipped:
            logger.warning(f"Skipped {skipped} non-object entries in {self._source_path()}")

        self._cache = tuple(records)
        logger.info(f"Loaded {len(self._cache)} investors from {self._source_path()}")
        return self._cache

    def reset(self) -> None:
        """Drop the cache (forces a re-read on next load)."""
        self._cache = None

    def _source_path(self) -> Path:
        if self.path.exists() or self.fallback_path is None:
            return self.path
        return self.fallback_path

    def _read(self) -> Sequence[Any]:
        source = self._source_path()
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as exc:
            raise DatasetLoadError(f"cannot read {source}: {exc}") from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DatasetLoadError(f"{source} is not valid JSON: {exc}") from exc

        if not isinstance(data, list):
            logger.warning(f"{source} does not contain a JSON array; treating as empty")
            return []
        return data
