from typing import Optional

from ..message import Message, MessageBuilder

NOT_SPECIFIED = "Not Specified"
NO_REASON = "No Reason Given"
NO_MESSAGE = "No Message Given"

_HEALTH_LEVELS = {
    "ok": "Ok",
    "notice": "Notice",
    "warning": "Warning",
    "error": "Error",
}


def yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def add_heading(b: MessageBuilder, kind: str, title: str, server_name: Optional[str]) -> None:
    heading = f"{kind}: {title}"
    if server_name:
        heading = f"{server_name} - {heading}"
    b.add_heading(heading)


def add_quality(b: MessageBuilder, quality: Optional[str]) -> None:
    b.add_key_value("Quality", quality or NOT_SPECIFIED)


def health_level(level: Optional[str]) -> str:
    return _HEALTH_LEVELS.get((level or "").strip().lower(), "Unknown")


def health_check(
    source: str,
    level: Optional[str],
    message: Optional[str],
    health_type: Optional[str],
    wiki_url: Optional[str],
    server_name: Optional[str],
) -> Message:
    b = MessageBuilder()
    add_heading(b, source, "Health Check", server_name)
    b.add_key_value("Level", health_level(level))
    b.add_key_value("Message", message or NO_MESSAGE)
    b.add_key_value("Type", health_type or NO_MESSAGE)
    b.add_key_value("Wiki URL", wiki_url or NO_MESSAGE)
    return b.build()
