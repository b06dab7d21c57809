import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest
from mautrix.client.api import ClientAPI
from mautrix.errors import MatrixRequestError

from yarrbot.dispatch import ShutdownSignal
from yarrbot.invites import InviteHandler
from yarrbot.room_events import RoomInvite

BOT_MXID = "@yarrbot:example.com"
ROOM = "!invited:example.com"


@pytest.fixture
def sleep():
    return AsyncMock(return_value=True)


@pytest.fixture
def handler(client, store, log, sleep):
    return InviteHandler(client, store, log, rng=random.Random(42), sleep=sleep)


def invite(sender="@admin:example.com", state_key=BOT_MXID):
    return RoomInvite(room_id=ROOM, sender=sender, state_key=state_key)


async def test_ignores_invites_for_other_users(handler, client, admin):
    assert not await handler.handle(invite(state_key="@someone:example.com"))
    client.join_room.assert_not_awaited()
    client.leave_room.assert_not_awaited()


async def test_declines_unknown_inviter(handler, client):
    assert not await handler.handle(invite(sender="@stranger:example.com"))
    client.leave_room.assert_awaited_once_with(ROOM)
    client.join_room.assert_not_awaited()


async def test_decline_failure_is_not_retried(handler, client):
    client.leave_room.side_effect = RuntimeError("nope")
    assert not await handler.handle(invite(sender="@stranger:example.com"))
    assert client.leave_room.await_count == 1


async def test_store_failure_leaves_invite_pending(handler, client, store, admin):
    store.fail.add("get_user_by_username")
    assert not await handler.handle(invite())
    client.join_room.assert_not_awaited()
    client.leave_room.assert_not_awaited()


async def test_joins_first_time(handler, client, sleep, admin):
    assert await handler.handle(invite())
    client.join_room.assert_awaited_once_with(ROOM, max_retries=0)
    assert sleep.await_count == 1


async def test_success_on_third_attempt_stops_retrying(handler, client, sleep, admin):
    client.join_room.side_effect = [RuntimeError("not ready"), RuntimeError("not ready"), ROOM]
    assert await handler.handle(invite())
    assert client.join_room.await_count == 3
    assert sleep.await_count == 3


async def test_gives_up_after_five_failures(handler, client, sleep, admin):
    client.join_room.side_effect = RuntimeError("not ready")
    assert not await handler.handle(invite())
    assert client.join_room.await_count == 5
    client.leave_room.assert_not_awaited()

    delays = [call.args[0] for call in sleep.await_args_list]
    for attempt, delay in enumerate(delays, start=1):
        base = 2 ** (attempt - 1) * 0.1
        assert base <= delay <= base + 1.0


def test_delay_bounds(client, store, log):
    h = InviteHandler(client, store, log, rng=random.Random(1))
    for attempt in range(1, 6):
        for _ in range(20):
            delay = h.delay_ms(attempt)
            assert 2 ** (attempt - 1) * 100 <= delay <= 2 ** (attempt - 1) * 100 + 1000


async def test_shutdown_aborts_backoff(client, store, log, admin):
    shutdown = ShutdownSignal()
    shutdown.trigger()
    h = InviteHandler(client, store, log, shutdown=shutdown)
    assert not await h.handle(invite())
    client.join_room.assert_not_awaited()


async def test_each_attempt_is_a_single_join_request(store, log, sleep, admin):
    api = MagicMock()
    api.request = AsyncMock(side_effect=MatrixRequestError("not ready"))
    matrix = ClientAPI(BOT_MXID, api=api)
    h = InviteHandler(matrix, store, log, rng=random.Random(7), sleep=sleep)

    assert not await asyncio.wait_for(h.handle(invite()), 2)
    assert api.request.await_count == 5
    assert sleep.await_count == 5
