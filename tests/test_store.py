import asyncio
import uuid
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from yarrbot.errors import TransientInfraError
from yarrbot.store import ArrType, User, UserRole, WebhookStore


class FakeDatabase:
    def __init__(self, conn=None, error=None):
        self.conn = conn or MagicMock()
        self.error = error
        self.active = 0
        self.peak = 0
        self.checkouts = 0

    @asynccontextmanager
    async def acquire(self):
        if self.error:
            raise self.error
        self.checkouts += 1
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0)
            yield self.conn
        finally:
            self.active -= 1


async def test_driver_errors_become_transient(log):
    store = WebhookStore(FakeDatabase(error=OSError("connection refused")), log)
    with pytest.raises(TransientInfraError):
        await store.any_users()


async def test_statement_errors_become_transient(log):
    conn = MagicMock()
    conn.fetchrow = AsyncMock(side_effect=RuntimeError("syntax error"))
    store = WebhookStore(FakeDatabase(conn), log)
    with pytest.raises(TransientInfraError):
        await store.get_user_by_username("@a:x")


async def test_pool_size_caps_checkouts(log):
    conn = MagicMock()
    conn.fetchrow = AsyncMock(return_value=None)
    db = FakeDatabase(conn)
    store = WebhookStore(db, log, pool_size=2)
    await asyncio.gather(*(store.any_users() for _ in range(10)))
    assert db.peak == 2


async def test_rows_are_mapped(log):
    user_id, hook_id = uuid.uuid4(), uuid.uuid4()
    conn = MagicMock()
    conn.fetchrow = AsyncMock(return_value={
        "id": str(hook_id), "arr_type": "radarr", "username": "radarr",
        "password": b"hash", "user_id": str(user_id),
    })
    store = WebhookStore(FakeDatabase(conn), log)
    webhook = await store.get_webhook(hook_id)
    assert webhook.id == hook_id
    assert webhook.arr_type == ArrType.RADARR
    assert webhook.user_id == user_id
    assert conn.fetchrow.await_args.args[1] == str(hook_id)


async def test_delete_webhook_removes_bindings_first(log):
    conn = MagicMock()
    conn.execute = AsyncMock()
    store = WebhookStore(FakeDatabase(conn), log)
    await store.delete_webhook(uuid.uuid4())
    statements = [c.args[0] for c in conn.execute.await_args_list]
    assert statements[0].startswith("DELETE FROM matrix_rooms")
    assert statements[1].startswith("DELETE FROM webhooks")


async def test_delete_webhook_is_one_transaction(log):
    conn = MagicMock()
    conn.execute = AsyncMock(side_effect=[None, RuntimeError("disk full")])
    db = FakeDatabase(conn)
    store = WebhookStore(db, log)
    with pytest.raises(TransientInfraError):
        await store.delete_webhook(uuid.uuid4())
    assert db.checkouts == 1
    conn.transaction.assert_called_once_with()
    exc_type = conn.transaction.return_value.__aexit__.await_args.args[0]
    assert exc_type is RuntimeError


async def test_create_webhook(log):
    conn = MagicMock()
    conn.execute = AsyncMock()
    store = WebhookStore(FakeDatabase(conn), log)
    owner = User(id=uuid.uuid4(), service_username="@a:x", user_role=UserRole.ADMIN)
    webhook = await store.create_webhook(ArrType.SONARR, "sonarr", b"hash", owner)
    assert webhook.user_id == owner.id
    args = conn.execute.await_args.args
    assert args[1:] == (str(webhook.id), "sonarr", "sonarr", b"hash", str(owner.id))
