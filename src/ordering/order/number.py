"""Order number generation: ``YYYYMMDD-XXXXXX`` (date plus six random characters)."""

import secrets
import string
from datetime import UTC, datetime

_ALPHABET = string.ascii_uppercase + string.digits
_SUFFIX_LENGTH = 6


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{now:%Y%m%d}-{suffix}"
