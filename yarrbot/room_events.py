import logging
from dataclasses import dataclass

from mautrix.types import MessageType, RoomID, UserID


@dataclass(frozen=True)
class RoomMessage:
    room_id: RoomID
    sender: UserID
    body: str
    msgtype: MessageType = MessageType.TEXT


@dataclass(frozen=True)
class RoomInvite:
    room_id: RoomID
    sender: UserID
    state_key: str


class RoomMessageHandler:
    """Feeds text messages to the command parser and queues its reply."""

    def __init__(self, client, parser, coordinator, log: logging.Logger) -> None:
        self.client = client
        self.parser = parser
        self.coordinator = coordinator
        self.log = log

    async def is_direct(self, room_id: RoomID) -> bool:
        try:
            members = await self.client.get_joined_members(room_id)
        except Exception as e:
            self.log.warning(f"Member fetch failed in {room_id}: {e}")
            return False
        return len(members) == 2

    async def handle(self, msg: RoomMessage) -> None:
        if msg.sender == self.client.mxid:
            return
        if msg.msgtype != MessageType.TEXT:
            self.log.debug(f"Ignoring {msg.msgtype} message in {msg.room_id}")
            return
        if not self.parser.is_command(msg.body):
            return
        is_direct = await self.is_direct(msg.room_id)
        reply = await self.parser.parse(msg.body, msg.sender, is_direct)
        if reply is not None:
            await self.coordinator.submit(msg.room_id, reply)
