import logging
from typing import Any, Optional

from ..errors import ValidationError
from ..message import Message
from ..store import ArrType
from . import radarr, sonarr
from .models import parse_event

_HANDLERS = {
    ArrType.SONARR: sonarr.HANDLERS,
    ArrType.RADARR: radarr.HANDLERS,
}


class WebhookTransformer:
    """Turns a decoded webhook body into a chat :class:`Message`."""

    def __init__(self, log: logging.Logger, server_name: Optional[str] = None) -> None:
        self.log = log
        self.server_name = server_name or None

    def transform(self, data: Any, arr_type: ArrType) -> Message:
        arr_type = ArrType(arr_type)
        evt = parse_event(data, arr_type)
        handler = _HANDLERS[arr_type].get(type(evt))
        if handler is None:
            raise ValidationError(f"unsupported {arr_type.value} event {type(evt).__name__}")
        self.log.debug(f"Transforming {arr_type.display_name} {evt.event_type} event")
        return handler(evt, self.server_name)
