"""Complaint identifier generation."""

import secrets
import string
import time

ID_PREFIX = "COMP"
ID_DELIMITER = "-"
TOKEN_LENGTH = 8
TOKEN_ALPHABET = string.digits + string.ascii_uppercase
_BASE36_DIGITS = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_complaint_id(
    timestamp_ms: int | None = None,
    prefix: str = ID_PREFIX,
    token_length: int = TOKEN_LENGTH,
) -> str:
    """Generate a complaint identifier.

    Format: {prefix}-{base36 epoch milliseconds}-{random token}
    Example: COMP-mf3k2x1a-7QZ0B4KD

    The random token is drawn from a CSPRNG over [0-9A-Z]. Uniqueness is
    probabilistic; callers that need a guarantee check the store before
    inserting.
    """
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    token = "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(token_length))
    return ID_DELIMITER.join((prefix, to_base36(timestamp_ms), token))
