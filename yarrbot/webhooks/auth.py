import base64
import binascii
import hmac
import logging
from typing import Optional, Tuple

from ..crypto import verify_password_async
from ..errors import AuthenticationError, NotFoundError
from ..short_id import decode_short_id
from ..store import Webhook, WebhookStore


def parse_basic_auth(header: Optional[str]) -> Tuple[str, str]:
    """Split ``Basic base64(user:pass)`` into its username and password."""
    if not header or " " not in header.strip():
        raise AuthenticationError("missing or malformed authorization header")
    typ, val = header.strip().split(" ", 1)
    if typ.lower() != "basic":
        raise AuthenticationError(f"unsupported authorization scheme {typ!r}")
    try:
        decoded = base64.b64decode(val.strip(), validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise AuthenticationError("authorization value is not valid base64") from e
    if ":" not in decoded:
        raise AuthenticationError("authorization value has no separator")
    username, password = decoded.split(":", 1)
    return username, password


class WebhookAuthenticator:
    def __init__(self, store: WebhookStore, log: logging.Logger) -> None:
        self.store = store
        self.log = log

    async def authenticate(self, short_id: str, auth_header: Optional[str]) -> Webhook:
        username, password = parse_basic_auth(auth_header)
        webhook_id = decode_short_id(short_id)
        webhook = await self.store.get_webhook(webhook_id)
        if webhook is None:
            raise NotFoundError(f"no webhook {short_id}")
        same_user = hmac.compare_digest(username.encode("utf-8"), webhook.username.encode("utf-8"))
        valid = await verify_password_async(password, webhook.password)
        if not (same_user and valid):
            self.log.warning(f"Rejected credentials for webhook {short_id}")
            raise AuthenticationError(f"bad credentials for webhook {short_id}")
        return webhook
