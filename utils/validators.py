"""
Input validators and random-token helpers.
"""

from __future__ import annotations

import re
import secrets
import string

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_STATE_ALPHABET = string.ascii_letters + string.digits

MAX_EMAIL_LENGTH = 254


def is_valid_email(value: str) -> bool:
    """Basic ``local@domain.tld`` shape check, capped at the RFC 5321 path length."""
    if len(value) > MAX_EMAIL_LENGTH:
        return False
    return _EMAIL_RE.fullmatch(value) is not None


def generate_random_string(length: int) -> str:
    """Alphanumeric token from a CSPRNG, used as the OAuth ``state``."""
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(_STATE_ALPHABET) for _ in range(length))
