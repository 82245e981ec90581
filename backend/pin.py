"""
PIN hashing helpers backed by bcrypt.

Hashes produced by bcryptjs (`$2a$` prefix) verify here as well, so PINs
stored by earlier clients keep working.
"""

from __future__ import annotations

import bcrypt

from shared.constants import PIN_HASH_ROUNDS


def hash_pin(pin: str, rounds: int = PIN_HASH_ROUNDS) -> str:
    """Hashes a PIN with a freshly generated salt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pin.encode("utf-8"), salt).decode("utf-8")


def verify_pin(pin: str, hashed_pin: str) -> bool:
    """
    Checks a candidate PIN against a stored hash in constant time.

    Raises:
        ValueError: If `hashed_pin` is not a valid bcrypt hash.
    """
    return bcrypt.checkpw(pin.encode("utf-8"), hashed_pin.encode("utf-8"))
