"""
Email Guess Helper for the Investor Matching Engine

Builds a plausible contact address for investor records that ship without
one. The guess is a pure function of (name, firm, website): no randomness,
so the same record always produces the same address.

Priority order for the domain:
1. website host (www. stripped)
2. firm slug with fund-ish suffixes removed, plus ".com"
3. example.com
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional
from urllib.parse import urlparse


FALLBACK_DOMAIN = "example.com"
FALLBACK_LOCAL_PART = "contact"

# Applied in order, each at most once, to the end of the firm slug
_FIRM_SUFFIX_PATTERNS = (
    re.compile(r"ventures?$"),
    re.compile(r"capital$"),
    re.compile(r"partners?$"),
    re.compile(r"group$"),
    re.compile(r"labs?$"),
    re.compile(r"fund$"),
    re.compile(r"vc$"),
    re.compile(r"holdings?$"),
    re.compile(r"management$"),
)

_FIRM_KEYWORD_RE = re.compile(
    r"\b(ventures?|capital|partners?|labs?|holdings?|vc|management|advisors?|group|llc|inc|fund)\b",
    re.IGNORECASE,
)

_slug_re = re.compile(r"[^a-z0-9]+")
_local_token_re = re.compile(r"[^a-zA-Z0-9._-]")


def domain_from_website(website: Optional[str]) -> Optional[str]:
    """
    Extract the host from a website value.

    Examples:
      - "https://www.Acme.vc/team" -> "acme.vc"
      - "acme.vc"                  -> "acme.vc"
    """
    if not website or not isinstance(website, str):
        return None
    value = website.strip()
    if not value:
        return None
    if not value.lower().startswith("http"):
        value = "https://" + value

    try:
        host = urlparse(value).hostname
    except ValueError:
        return None

    if not host:
        return None
    if host.startswith("www."):
        host = host[4:]
    return host or None


def domain_from_firm(firm: Optional[str]) -> Optional[str]:
    """
    Slugify a firm name into a guessed ".com" domain.

    Examples:
      - "Sequoia Capital" -> "sequoia.com"
      - "Acme Ventures"   -> "acme.com"
      - "VC"              -> None
    """
    if not firm or not isinstance(firm, str):
        return None
    base = _slug_re.sub("", firm.lower())
    for pattern in _FIRM_SUFFIX_PATTERNS:
        base = pattern.sub("", base, count=1)
    if not base:
        return None
    return base + ".com"


def looks_like_person(name: Optional[str]) -> bool:
    """
    True for multi-word names that carry no firm keyword.

    Keywords only count as whole words: "Vincent Lee" is a person even
    though "inc" appears inside "Vincent", where a substring test would
    read it as a firm and fall back to contact@.
    """
    if not name or not isinstance(name, str):
        return False
    return bool(re.search(r"\s", name.strip())) and not _FIRM_KEYWORD_RE.search(name)


def _normalize_token(token: str) -> str:
    decomposed = unicodedata.normalize("NFD", token)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _local_token_re.sub("", stripped).lower()


def first_last_local_part(name: Optional[str]) -> Optional[str]:
    """
    Build a "first.last" local part, diacritics stripped.

    Examples:
      - "José  García"        -> "jose.garcia"
      - "Mary Ann O'Neil"     -> "mary.oneil"
    """
    if not name:
        return None
    parts = [_normalize_token(p) for p in name.strip().split()]
    parts = [p for p in parts if p]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return f"{parts[0]}.{parts[-1]}"


def guess_email(
    name: Optional[str],
    firm: Optional[str] = None,
    website: Optional[str] = None,
) -> str:
    """
    Guess an investor's address from their name, firm and website.

    Falls back to contact@example.com when nothing can be derived.
    """
    domain = domain_from_website(website) or domain_from_firm(firm or name)

    local = first_last_local_part(name) if looks_like_person(name) else None
    if not local:
        local = FALLBACK_LOCAL_PART

    return f"{local}@{domain or FALLBACK_DOMAIN}"
