from typing import Any, Dict

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ...errors import ValidationError
from ...store import ArrType
from .radarr import RadarrEvent
from .sonarr import SonarrEvent

_ADAPTERS: Dict[ArrType, TypeAdapter] = {
    ArrType.SONARR: TypeAdapter(SonarrEvent),
    ArrType.RADARR: TypeAdapter(RadarrEvent),
}


def parse_event(data: Any, arr_type: ArrType):
    """Decode a JSON body into the typed event for ``arr_type``.

    Only that source's variants are considered; anything else raises
    :class:`ValidationError`.
    """
    if not isinstance(data, dict):
        raise ValidationError("payload is not a JSON object")
    try:
        return _ADAPTERS[ArrType(arr_type)].validate_python(data)
    except PydanticValidationError as e:
        raise ValidationError(f"invalid {ArrType(arr_type).value} payload: {e.error_count()} error(s)") from e


__all__ = ["parse_event", "SonarrEvent", "RadarrEvent"]
