import logging
from typing import List, Optional, Sequence

from mautrix.types import RoomID, UserID

from ..crypto import generate_password, hash_password_async
from ..errors import NotFoundError, ProtocolError, TransientInfraError
from ..message import Message, MessageBuilder
from ..short_id import decode_short_id, encode_short_id
from ..store import ArrType, User, WebhookStore

NOT_DIRECT = "Yarrbot will only respond to webhook commands in a private room."
NOT_ALLOWED = "You are not allowed to modify webhooks."
NOT_OWNER = "You are not allowed to modify this webhook."
UNKNOWN_SUBCOMMAND = "Unrecognized webhook command; see `!yarrbot help` for usage."
ADD_USAGE = "Usage: !yarrbot webhook add [sonarr|radarr] roomOrAliasId username [password]"
JOIN_FAILED = (
    "Encountered issue while attempting to join room. "
    "You may need to invite yarrbot to the room first."
)
CREATE_FAILED = "Failed to create new webhook."
BIND_FAILED = "There was an issue completing the webhook; please try again."
NO_WEBHOOK_GIVEN = "No webhook specified."
NO_SUCH_WEBHOOK = "That webhook doesn't exist."
REMOVED = "Webhook removed."
REMOVE_FAILED = "Failed to delete webhook. Please try again."
NO_WEBHOOKS = "You have no webhooks configured."


def is_room_ref(arg: str) -> bool:
    return arg.startswith(("!", "#"))


def user_domain(user: UserID) -> str:
    try:
        return str(user).split(":", 1)[1]
    except IndexError:
        return ""


class WebhookCommands:
    """``!yarrbot webhook add|remove|list``, for known users in direct rooms."""

    def __init__(
        self,
        client,
        store: WebhookStore,
        log: logging.Logger,
        password_length: Optional[int] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.log = log
        self.password_length = password_length

    async def handle(self, args: Sequence[str], sender: UserID, is_direct: bool) -> Message:
        if not is_direct:
            return Message.text(NOT_DIRECT)
        user = await self.store.get_user_by_username(sender)
        if user is None:
            self.log.warning(f"{sender} tried to use webhook commands without permission")
            return Message.text(NOT_ALLOWED)

        sub = args[0].lower() if args else ""
        rest = list(args[1:])
        if sub == "add":
            return await self.add(user, rest)
        if sub == "remove":
            return await self.remove(user, rest)
        if sub == "list":
            return await self.list_webhooks(user, rest)
        return Message.text(UNKNOWN_SUBCOMMAND)

    async def _join(self, room: str) -> RoomID:
        server = user_domain(self.client.mxid)
        try:
            return await self.client.join_room(room, servers=[server] if server else None)
        except Exception as e:
            raise ProtocolError(f"join {room} failed: {e}") from e

    async def add(self, user: User, args: List[str]) -> Message:
        arr_type = ArrType.SONARR
        if args and args[0].lower() in (t.value for t in ArrType):
            arr_type = ArrType(args.pop(0).lower())
        elif len(args) > 1 and not is_room_ref(args[0]) and is_room_ref(args[1]):
            return Message.text(f"Unknown collection manager type \"{args[0]}\".")
        if len(args) < 2:
            return Message.text(ADD_USAGE)
        raw_room, username = args[0], args[1]
        if not is_room_ref(raw_room):
            return Message.text(f"Could not parse room or alias \"{raw_room}\".")
        password = args[2] if len(args) > 2 else generate_password(self.password_length)

        try:
            room_id = await self._join(raw_room)
        except ProtocolError:
            self.log.exception(f"Failed to join {raw_room} for new webhook")
            return Message.text(JOIN_FAILED)

        hashed = await hash_password_async(password)
        try:
            webhook = await self.store.create_webhook(arr_type, username, hashed, user)
        except TransientInfraError:
            return Message.text(CREATE_FAILED)

        try:
            await self.store.create_room(room_id, webhook)
        except TransientInfraError:
            try:
                await self.store.delete_webhook(webhook.id)
            except TransientInfraError:
                self.log.error(f"Could not roll back unbound webhook {webhook.id}")
            return Message.text(BIND_FAILED)

        short_id = encode_short_id(webhook.id)
        self.log.info(f"{user.service_username} created {arr_type.value} webhook {short_id} for {room_id}")
        return (
            MessageBuilder()
            .add_line(f"Set up a new webhook for {raw_room}.")
            .add_key_value("ID", short_id, code=True)
            .add_key_value("Username", username, code=True)
            .add_key_value("Password", password, code=True)
            .build()
        )

    async def remove(self, user: User, args: List[str]) -> Message:
        if not args:
            return Message.text(NO_WEBHOOK_GIVEN)
        try:
            webhook_id = decode_short_id(args[0])
        except NotFoundError:
            return Message.text(NO_SUCH_WEBHOOK)
        webhook = await self.store.get_webhook(webhook_id)
        if webhook is None:
            return Message.text(NO_SUCH_WEBHOOK)
        if webhook.user_id != user.id and not user.is_system_admin:
            self.log.warning(f"{user.service_username} tried to remove webhook {args[0]} they don't own")
            return Message.text(NOT_OWNER)
        try:
            await self.store.delete_webhook(webhook.id)
        except TransientInfraError:
            return Message.text(REMOVE_FAILED)
        self.log.info(f"{user.service_username} removed webhook {args[0]}")
        return Message.text(REMOVED)

    async def list_webhooks(self, user: User, args: List[str]) -> Message:
        show_all = bool(args) and args[0].lower() == "all" and user.is_system_admin
        webhooks = await self.store.list_webhooks(None if show_all else user.id)
        if not webhooks:
            return Message.text(NO_WEBHOOKS)
        entries = " | ".join(f"{encode_short_id(w.id)} ({w.arr_type.value})" for w in webhooks)
        return Message.text(f"Webhooks: {entries}")
