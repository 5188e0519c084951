"""
app/utils/short_id.py — Public recipe IDs
Base62 (URL-safe, alphanumeric) IDs from the OS CSPRNG. 12 characters
gives ~71 bits of entropy.
"""
from __future__ import annotations

import secrets
import string

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
ID_LENGTH = 12


def generate_short_id(length: int = ID_LENGTH) -> str:
    """Uniform over ALPHABET per character (secrets.choice, no modulo bias)."""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
