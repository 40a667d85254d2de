"""Phone canonicalisation used as the deduplication key."""
from __future__ import annotations

import re
from typing import Optional

COUNTRY_CODE = "55"

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: Optional[str]) -> str:
    """Return ``raw`` as a dialable digit string carrying the Brazilian country code.

    Numbers that already start with ``55`` and have 12 or more digits pass
    through untouched, 10/11 digit national numbers get the prefix, anything
    else is returned stripped but otherwise unchanged.
    """

    if not raw:
        return ""
    digits = _NON_DIGITS.sub("", str(raw))
    if digits.startswith(COUNTRY_CODE) and len(digits) >= 12:
        return digits
    if len(digits) in (10, 11):
        return f"{COUNTRY_CODE}{digits}"
    return digits


__all__ = ["COUNTRY_CODE", "normalize_phone"]
