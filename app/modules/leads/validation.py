"""Contact data validation for the public lead forms (Portuguese numbers)."""

import re
from typing import Optional

import email_validator

_MOBILE_RE = re.compile(r"^(\+351|00351)?9\d{8}$")
_LANDLINE_RE = re.compile(r"^(\+351|00351)?2\d{8}$")

_LOWERCASE_WORDS = {"da", "de", "do", "das", "dos", "e"}


def _strip_phone(phone: str) -> str:
    return re.sub(r"[^\d+]", "", re.sub(r"\s+", "", phone))


def validate_phone(phone: str) -> bool:
    clean = _strip_phone(phone)
    return bool(_MOBILE_RE.match(clean) or _LANDLINE_RE.match(clean))


def validate_email(email: str) -> bool:
    """Syntax check only; no DNS lookups."""
    try:
        email_validator.validate_email(email, check_deliverability=False)
    except email_validator.EmailNotValidError:
        return False
    return True


def sanitize_phone(phone: str) -> str:
    """Normalize to +351XXXXXXXXX; foreign numbers keep their own prefix."""
    clean = _strip_phone(phone)
    if clean.startswith("00351"):
        return "+351" + clean[5:]
    if not clean.startswith("+"):
        return "+351" + clean
    return clean


def location_label(code: Optional[str]) -> str:
    """Display label for a district/municipality code, e.g. caldas-da-rainha -> Caldas da Rainha."""
    if not code:
        return ""
    words = re.split(r"[-_\s]+", code.strip())
    return " ".join(
        word.lower() if index and word.lower() in _LOWERCASE_WORDS else word.capitalize()
        for index, word in enumerate(words)
        if word
    )
