import logging
from typing import Optional

from mautrix.types import UserID

from ..errors import TransientInfraError
from ..message import Message
from ..store import WebhookStore
from . import basic
from .webhook import WebhookCommands

COMMAND_PREFIX = "!yarrbot"

UNRECOGNIZED = "Unrecognized command."
DATABASE_ERROR = "Yarrbot encountered an error communicating with the database."
INTERNAL_ERROR = "Yarrbot encountered an error while handling that command."


def is_command(text: Optional[str]) -> bool:
    tokens = (text or "").split(None, 1)
    return bool(tokens) and tokens[0].lower() == COMMAND_PREFIX


class CommandParser:
    def __init__(
        self,
        client,
        store: WebhookStore,
        log: logging.Logger,
        password_length: Optional[int] = None,
        source_url: str = basic.DEFAULT_SOURCE_URL,
    ) -> None:
        self.log = log
        self.source_url = source_url or basic.DEFAULT_SOURCE_URL
        self.webhooks = WebhookCommands(client, store, log.getChild("webhook"), password_length)

    is_command = staticmethod(is_command)

    async def parse(self, text: str, sender: UserID, is_direct: bool) -> Optional[Message]:
        """Run a ``!yarrbot`` command and return the reply.

        Returns ``None`` for anything that isn't addressed to the bot;
        every command, recognized or not, gets a reply.
        """
        tokens = (text or "").split()
        if not tokens or tokens[0].lower() != COMMAND_PREFIX:
            return None
        key = tokens[1].lower() if len(tokens) > 1 else ""
        args = tokens[2:]
        self.log.debug(f"Command {key or '(none)'} from {sender}")
        try:
            if key == "ping":
                return basic.ping()
            if key == "help":
                return basic.help_message()
            if key == "sourcecode":
                return basic.sourcecode(self.source_url)
            if key == "webhook":
                return await self.webhooks.handle(args, sender, is_direct)
        except TransientInfraError:
            self.log.exception(f"Database error while handling {key} from {sender}")
            return Message.text(DATABASE_ERROR)
        except Exception:
            self.log.exception(f"Unexpected error while handling {key} from {sender}")
            return Message.text(INTERNAL_ERROR)
        return Message.text(UNRECOGNIZED)
