import base64
import re
import uuid
from typing import Any

from .errors import NotFoundError

SHORT_ID_LENGTH = 22
_SHORT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{22}$")


def encode_short_id(value: uuid.UUID) -> str:
    """Encode a UUID as unpadded, URL-safe base64 (22 characters)."""
    return base64.urlsafe_b64encode(value.bytes).rstrip(b"=").decode("ascii")


def decode_short_id(short_id: Any) -> uuid.UUID:
    """Decode a short ID back into a UUID.

    Anything that isn't exactly 22 URL-safe base64 characters raises
    :class:`NotFoundError`, since no webhook can live behind it.
    """
    if not isinstance(short_id, str) or not _SHORT_ID_RE.match(short_id):
        raise NotFoundError("malformed short id")
    try:
        raw = base64.urlsafe_b64decode(short_id + "==")
    except (ValueError, TypeError) as e:
        raise NotFoundError("malformed short id") from e
    if len(raw) != 16:
        raise NotFoundError("malformed short id")
    return uuid.UUID(bytes=raw)
