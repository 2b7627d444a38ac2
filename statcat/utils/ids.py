# statcat/utils/ids.py
from __future__ import annotations

from statcat.core.errors import FatalSetupError

# Snowflakes are unsigned 64-bit, but storage columns are signed BIGINT.
MAX_SNOWFLAKE = (1 << 63) - 1


def require_snowflake(value: str, what: str = "id") -> int:
    """Parse user input as a snowflake, failing with FatalSetupError."""
    text = value.strip()
    if not text.isdigit():
        raise FatalSetupError(f"Malformed {what}: {value!r} is not a numeric id")
    snowflake = int(text)
    if snowflake == 0 or snowflake > MAX_SNOWFLAKE:
        raise FatalSetupError(f"Malformed {what}: {value!r} is out of range")
    return snowflake
