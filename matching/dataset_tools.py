"""
Offline tooling for the static investor dataset.

- CSV import into the investors JSON array (standard or partner export layout)
- Email backfill: writes guessed addresses into rows that have none, after
  saving a one-time backup of the untouched file

Usage:
    investors = read_investors_csv("export.csv", layout="partner", limit=500)
    write_dataset(investors, "data/investors.json")

    updated = fill_missing_emails("data/investors_static.json")
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from utils.email_guess import guess_email

logger = logging.getLogger(__name__)


CSV_LAYOUTS = ("standard", "partner")
DEFAULT_PARTNER_LIMIT = 500

# Standard layout: columns named after the dataset keys
REQUIRED_COLUMNS = (
    "name",
    "firm",
    "role",
    "email",
    "linkedIn",
    "portfolioHighlights",
    "investmentThesis",
    "sectors",
    "stages",
    "checkSize",
    "location",
)
LIST_COLUMNS = ("portfolioHighlights", "sectors", "stages")
LIST_SEPARATOR = "|"


class DatasetImportError(ValueError):
    """Raised when an input file cannot be turned into dataset rows."""


def split_list_field(value: Optional[str]) -> List[str]:
    """Split a "|"-joined cell ("Fintech | SaaS") into trimmed items."""
    if not value:
        return []
    return [item.strip() for item in str(value).split(LIST_SEPARATOR) if item.strip()]


def normalize_website(url: Optional[str]) -> str:
    """Prefix a scheme onto bare hosts; empty stays empty."""
    value = (url or "").strip()
    if not value:
        return ""
    if value.startswith(("http://", "https://")):
        return value
    return f"http://{value}"


# =============================================================================
# CSV IMPORT
# =============================================================================

def _read_rows(csv_path: str | Path) -> tuple:
    path = Path(csv_path)
    try:
        with path.open(newline="", encoding="utf-8-sig") as handle:
            reader = csv.reader(handle)
            lines = [row for row in reader if any(cell.strip() for cell in row)]
    except OSError as exc:
        raise DatasetImportError(f"cannot read {path}: {exc}") from exc

    if not lines:
        raise DatasetImportError(f"{path} has no header row")

    header = [cell.strip() for cell in lines[0]]
    rows = [[cell.strip() for cell in row] for row in lines[1:]]
    return header, rows


def _standard_row(cells: Dict[str, str]) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    for column in REQUIRED_COLUMNS:
        value = cells.get(column, "")
        row[column] = split_list_field(value) if column in LIST_COLUMNS else value
    return row


def _partner_row(cells: Dict[str, str]) -> Optional[Dict[str, Any]]:
    name = " ".join(p for p in (cells.get("first", ""), cells.get("last", "")) if p).strip()
    email = cells.get("email", "")
    if not name and not email:
        return None

    location = ", ".join(
        part for part in (cells.get("city", ""), cells.get("state", ""), cells.get("country", ""))
        if part
    )
    return {
        "name": name,
        "firm": cells.get("partner") or cells.get("firm") or "",
        "role": cells.get("title", ""),
        "email": email,
        "linkedIn": "",
        "portfolioHighlights": [],
        "investmentThesis": "",
        "sectors": [],
        "stages": [],
        "checkSize": "",
        "location": location,
        "website": normalize_website(cells.get("website")),
    }


def read_investors_csv(
    csv_path: str | Path,
    layout: str = "standard",
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Convert a CSV export into dataset rows.

    Layouts:
        standard: one column per dataset key (all of REQUIRED_COLUMNS must be
                  present); list columns are "|"-separated.
        partner:  contact-list export (Partner/Firm, First, Last, Title,
                  Email, City, State, Country, Website); matched
                  case-insensitively. Rows with neither name nor email are
                  skipped. Stops after ``limit`` rows (default 500).

    Raises:
        DatasetImportError: unreadable file, unknown layout or missing columns
    """
    if layout not in CSV_LAYOUTS:
        raise DatasetImportError(f"Unknown CSV layout '{layout}'. Expected one of: {', '.join(CSV_LAYOUTS)}")

    header, rows = _read_rows(csv_path)

    investors: List[Dict[str, Any]] = []
    if layout == "standard":
        missing = [column for column in REQUIRED_COLUMNS if column not in header]
        if missing:
            raise DatasetImportError(f"Missing required header: {', '.join(missing)}")
        for cells in rows:
            investors.append(_standard_row(dict(zip(header, cells))))
            if limit and len(investors) >= limit:
                break
    else:
        keys = [column.lower() for column in header]
        cap = limit or DEFAULT_PARTNER_LIMIT
        for cells in rows:
            # Repeated columns (e.g. two "Phone") keep the first occurrence
            mapped: Dict[str, str] = {}
            for key, value in zip(keys, cells):
                mapped.setdefault(key, value)
            row = _partner_row(mapped)
            if row is None:
                continue
            investors.append(row)
            if len(investors) >= cap:
                break

    logger.info(f"Parsed {len(investors)} investors from {csv_path} ({layout} layout)")
    return investors


def write_dataset(investors: Iterable[Dict[str, Any]], output_path: str | Path) -> Path:
    """Write rows as a pretty-printed JSON array."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = list(investors)
    path.write_text(json.dumps(rows, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Imported {len(rows)} investors -> {path}")
    return path


# =============================================================================
# EMAIL BACKFILL
# =============================================================================

def default_backup_path(dataset_path: str | Path) -> Path:
    """data/investors_static.json -> data/investors_static.backup.json"""
    path = Path(dataset_path)
    return path.with_name(f"{path.stem}.backup{path.suffix}")


def fill_missing_emails(
    dataset_path: str | Path,
    backup_path: Optional[str | Path] = None,
) -> int:
    """
    Write guessed emails into every dataset row that has none.

    The untouched file is copied to ``backup_path`` first, unless a backup
    already exists there. Filled rows are marked ``emailGuessed`` so they
    are never mistaken for sourced addresses. Returns the number of rows
    updated.

    Raises:
        DatasetImportError: unreadable file, invalid JSON or not an array
    """
    path = Path(dataset_path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DatasetImportError(f"cannot read {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DatasetImportError(f"Failed to parse JSON in {path}: {exc}") from exc

    if not isinstance(data, list):
        raise DatasetImportError(f"Expected an array in {path}")

    backup = Path(backup_path) if backup_path else default_backup_path(path)
    if not backup.exists():
        try:
            backup.write_text(raw, encoding="utf-8")
        except OSError as exc:
            logger.warning(f"Backup failed (continuing): {exc}")

    updated = 0
    rows: List[Any] = []
    for row in data:
        if not isinstance(row, dict) or str(row.get("email") or "").strip():
            rows.append(row)
            continue
        filled = dict(row)
        filled["email"] = guess_email(
            str(row.get("name") or ""),
            str(row.get("firm") or "") or None,
            str(row.get("website") or "") or None,
        )
        filled["emailGuessed"] = True
        rows.append(filled)
        updated += 1

    path.write_text(json.dumps(rows, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Updated {updated} investor emails. Backup at {backup}")
    return updated
