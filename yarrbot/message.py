import html
from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class Message:
    """A chat message in two equivalent renderings: plain text and HTML."""

    plain: str
    html: str

    @classmethod
    def text(cls, text: str) -> "Message":
        return cls(plain=text, html=html.escape(text, quote=False))


def _esc(s: str) -> str:
    return html.escape(str(s), quote=False)


class MessageBuilder:
    """Builds a :class:`Message` line by line, forward-only.

    Every call appends the same information to both renderings:

      - ``add_heading("Movie Grabbed: Up")`` -> ``Movie Grabbed: Up`` / ``<h1>..</h1>``
      - ``add_key_value("Quality", "HD")`` -> ``Quality: HD`` / ``<strong>Quality</strong>: HD<br>``
      - ``add_break()`` -> blank line / ``<br>``

    Values are HTML-escaped; headings and keys are escaped too, so callers can
    pass payload data straight through.
    """

    def __init__(self) -> None:
        self._plain: List[str] = []
        self._html: List[str] = []

    def add_heading(self, text: str, level: int = 1) -> "MessageBuilder":
        level = min(max(level, 1), 6)
        self._plain.append(str(text))
        self._html.append(f"<h{level}>{_esc(text)}</h{level}>")
        return self

    def add_line(self, text: str) -> "MessageBuilder":
        self._plain.append(str(text))
        self._html.append(f"{_esc(text)}<br>")
        return self

    def add_key_value(self, key: str, value: str, code: bool = False) -> "MessageBuilder":
        self._plain.append(f"{key}: {value}")
        rendered = f"<code>{_esc(value)}</code>" if code else _esc(value)
        self._html.append(f"<strong>{_esc(key)}</strong>: {rendered}<br>")
        return self

    def add_list(self, items: Iterable[str], code: bool = False) -> "MessageBuilder":
        items = list(items)
        if not items:
            return self
        self._plain.extend(f"- {item}" for item in items)
        wrap = (lambda s: f"<code>{_esc(s)}</code>") if code else _esc
        self._html.append("<ul>" + "".join(f"<li>{wrap(item)}</li>" for item in items) + "</ul>")
        return self

    def add_break(self) -> "MessageBuilder":
        if self._plain and self._plain[-1] != "":
            self._plain.append("")
            self._html.append("<br>")
        return self

    def build(self) -> Message:
        plain = "\n".join(self._plain).strip()
        parts = list(self._html)
        while parts and parts[-1] == "<br>":
            parts.pop()
        rich = "".join(parts)
        if rich.endswith("<br>"):
            rich = rich[: -len("<br>")]
        return Message(plain=plain, html=rich)
