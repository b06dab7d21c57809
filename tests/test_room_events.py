import pytest
from mautrix.types import MessageType

from yarrbot.commands import CommandParser
from yarrbot.room_events import RoomMessage, RoomMessageHandler

ADMIN = "@admin:example.com"


@pytest.fixture
def handler(client, store, coordinator, log):
    return RoomMessageHandler(client, CommandParser(client, store, log), coordinator, log)


def message(body, sender=ADMIN, msgtype=MessageType.TEXT):
    return RoomMessage(room_id="!dm:example.com", sender=sender, body=body, msgtype=msgtype)


async def test_replies_to_commands(handler, coordinator):
    await handler.handle(message("!yarrbot ping"))
    assert len(coordinator.sent) == 1
    room_id, reply = coordinator.sent[0]
    assert room_id == "!dm:example.com"
    assert reply.plain == "pong"


async def test_ignores_own_messages(handler, client, coordinator):
    await handler.handle(message("!yarrbot ping", sender=client.mxid))
    assert not coordinator.sent


async def test_ignores_non_text(handler, coordinator):
    await handler.handle(message("!yarrbot ping", msgtype=MessageType.NOTICE))
    assert not coordinator.sent


async def test_ignores_chatter(handler, client, coordinator):
    await handler.handle(message("good morning"))
    assert not coordinator.sent
    client.get_joined_members.assert_not_awaited()


async def test_group_room_is_not_direct(handler, client, coordinator, admin):
    client.get_joined_members.return_value = {"@a:x": None, "@b:x": None, "@c:x": None}
    await handler.handle(message("!yarrbot webhook list"))
    assert coordinator.sent[0][1].plain == "Yarrbot will only respond to webhook commands in a private room."


async def test_member_lookup_failure_is_not_direct(handler, client, coordinator, admin):
    client.get_joined_members.side_effect = RuntimeError("timeout")
    await handler.handle(message("!yarrbot webhook list"))
    assert coordinator.sent[0][1].plain == "Yarrbot will only respond to webhook commands in a private room."


async def test_direct_room(handler, coordinator, admin):
    await handler.handle(message("!yarrbot webhook list"))
    assert coordinator.sent[0][1].plain == "You have no webhooks configured."
