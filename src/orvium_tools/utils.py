"""Utility helpers for identifier normalization."""

from __future__ import annotations

import re

ORCID_PATTERN = re.compile(r"^\d{4}-\d{4}-\d{4}-\d{3}[0-9Xx]$")


def normalize_orcid(identifier: str) -> str | None:
    """Return the ORCID with an upper-case check digit, or None if malformed.

    Only the bare ``0000-0000-0000-0000`` form is accepted; ORCID URLs are not.
    """
    if not identifier:
        return None
    candidate = identifier.strip()
    if not ORCID_PATTERN.match(candidate):
        return None
    return candidate.upper()

