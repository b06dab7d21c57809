import json
import logging
from typing import Optional

from aiohttp.web import HTTPRequestEntityTooLarge, Request

from ..errors import PayloadTooLargeError, ValidationError
from .auth import WebhookAuthenticator
from .transformer import WebhookTransformer


def clamp_body(req: Request, max_bytes: int) -> None:
    if max_bytes and req.content_length and req.content_length > max_bytes:
        raise PayloadTooLargeError(f"declared body of {req.content_length} bytes")


async def read_body(req: Request, max_bytes: int) -> bytes:
    clamp_body(req, max_bytes)
    try:
        raw = await req.read()
    except HTTPRequestEntityTooLarge as e:
        raise PayloadTooLargeError("body exceeds the server limit") from e
    if max_bytes and len(raw) > max_bytes:
        raise PayloadTooLargeError(f"body of {len(raw)} bytes")
    return raw


def decode_json(raw: bytes):
    try:
        return json.loads(raw.decode("utf-8") or "null")
    except (UnicodeDecodeError, ValueError) as e:
        raise ValidationError(f"body is not valid JSON: {e}") from e


class WebhookRelay:
    """Authenticated webhook body in, one queued message per bound room out."""

    def __init__(
        self,
        authenticator: WebhookAuthenticator,
        transformer: WebhookTransformer,
        store,
        coordinator,
        log: logging.Logger,
    ) -> None:
        self.authenticator = authenticator
        self.transformer = transformer
        self.store = store
        self.coordinator = coordinator
        self.log = log

    async def handle(self, short_id: str, auth_header: Optional[str], raw: bytes) -> int:
        """Returns how many rooms the message was queued for."""
        webhook = await self.authenticator.authenticate(short_id, auth_header)
        data = decode_json(raw)
        message = self.transformer.transform(data, webhook.arr_type)
        rooms = await self.store.get_rooms(webhook.id)
        if not rooms:
            self.log.warning(f"Webhook {short_id} has no rooms bound, dropping event")
            return 0
        queued = await self.coordinator.fan_out([r.room_id for r in rooms], message)
        self.log.info(f"Queued {webhook.arr_type.display_name} event from {short_id} for {queued}/{len(rooms)} room(s)")
        return queued
