from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ArrModel(BaseModel):
    """Base for Sonarr/Radarr payload parts: camelCase on the wire, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )
