import logging
import uuid
from typing import Dict, List, Optional, Set
from unittest.mock import AsyncMock, MagicMock

import pytest

from yarrbot.crypto import hash_password
from yarrbot.errors import TransientInfraError
from yarrbot.message import Message
from yarrbot.store import ArrType, MatrixRoom, User, UserRole, Webhook

BOT_MXID = "@yarrbot:example.com"


class FakeStore:
    """In-memory stand-in for WebhookStore; names in ``fail`` raise TransientInfraError."""

    def __init__(self) -> None:
        self.users: Dict[uuid.UUID, User] = {}
        self.webhooks: Dict[uuid.UUID, Webhook] = {}
        self.rooms: Dict[uuid.UUID, MatrixRoom] = {}
        self.fail: Set[str] = set()

    def _check(self, name: str) -> None:
        if name in self.fail:
            raise TransientInfraError(f"{name} failed")

    async def any_users(self) -> bool:
        self._check("any_users")
        return bool(self.users)

    async def create_user(self, username: str, role: UserRole = UserRole.ADMIN) -> User:
        self._check("create_user")
        user = User(id=uuid.uuid4(), service_username=username, user_role=role)
        self.users[user.id] = user
        return user

    async def get_user_by_username(self, username: str) -> Optional[User]:
        self._check("get_user_by_username")
        return next((u for u in self.users.values() if u.service_username == username), None)

    async def create_webhook(self, arr_type, username, password_hash, owner) -> Webhook:
        self._check("create_webhook")
        webhook = Webhook(id=uuid.uuid4(), arr_type=ArrType(arr_type), username=username,
                          password=password_hash, user_id=owner.id)
        self.webhooks[webhook.id] = webhook
        return webhook

    async def get_webhook(self, webhook_id) -> Optional[Webhook]:
        self._check("get_webhook")
        return self.webhooks.get(webhook_id)

    async def list_webhooks(self, owner_id=None) -> List[Webhook]:
        self._check("list_webhooks")
        return [w for w in self.webhooks.values() if owner_id is None or w.user_id == owner_id]

    async def delete_webhook(self, webhook_id) -> None:
        self._check("delete_webhook")
        self.webhooks.pop(webhook_id, None)
        for rid in [r.id for r in self.rooms.values() if r.webhook_id == webhook_id]:
            del self.rooms[rid]

    async def create_room(self, room_id, webhook) -> MatrixRoom:
        self._check("create_room")
        room = MatrixRoom(id=uuid.uuid4(), room_id=room_id, webhook_id=webhook.id)
        self.rooms[room.id] = room
        return room

    async def get_rooms(self, webhook_id) -> List[MatrixRoom]:
        self._check("get_rooms")
        return [r for r in self.rooms.values() if r.webhook_id == webhook_id]

    async def get_all_room_ids(self) -> List[str]:
        self._check("get_all_room_ids")
        return sorted({r.room_id for r in self.rooms.values()})


class RecordingCoordinator:
    def __init__(self) -> None:
        self.sent: List[tuple] = []

    async def submit(self, room_id, message: Message) -> bool:
        self.sent.append((room_id, message))
        return True

    async def fan_out(self, room_ids, message: Message) -> int:
        room_ids = list(room_ids)
        for room_id in room_ids:
            await self.submit(room_id, message)
        return len(room_ids)


@pytest.fixture
def log() -> logging.Logger:
    return logging.getLogger("yarrbot.tests")


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def client() -> MagicMock:
    c = MagicMock()
    c.mxid = BOT_MXID
    c.send_message = AsyncMock(return_value="$event")
    c.join_room = AsyncMock(side_effect=lambda room, *args, **kwargs: room if room.startswith("!") else "!joined:example.com")
    c.leave_room = AsyncMock()
    c.get_joined_members = AsyncMock(return_value={BOT_MXID: None, "@admin:example.com": None})
    return c


@pytest.fixture
def coordinator() -> RecordingCoordinator:
    return RecordingCoordinator()


@pytest.fixture
async def admin(store: FakeStore) -> User:
    return await store.create_user("@admin:example.com", UserRole.ADMIN)


@pytest.fixture
async def sysadmin(store: FakeStore) -> User:
    return await store.create_user("@root:example.com", UserRole.SYSTEM_ADMIN)


@pytest.fixture
async def sonarr_hook(store: FakeStore, admin: User) -> Webhook:
    webhook = await store.create_webhook(ArrType.SONARR, "sonarr", hash_password("hunter2", iterations=1000), admin)
    await store.create_room("!media:example.com", webhook)
    return webhook
