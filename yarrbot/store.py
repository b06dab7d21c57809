"""Persistence for users, webhooks and the rooms bound to them.

Every public method checks out one pooled connection for a single statement
and returns it straight away; nothing here holds a transaction open across
calls. Driver errors are wrapped into :class:`TransientInfraError`.
"""
import asyncio
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, List, Optional

from mautrix.util.async_db import Database
from mautrix.util.logging import TraceLogger

from .errors import TransientInfraError

DEFAULT_POOL_SIZE = 20


class UserRole(str, Enum):
    ADMIN = "admin"
    SYSTEM_ADMIN = "system_admin"


class ArrType(str, Enum):
    SONARR = "sonarr"
    RADARR = "radarr"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class User:
    id: uuid.UUID
    service_username: str
    user_role: UserRole

    @property
    def is_system_admin(self) -> bool:
        return self.user_role == UserRole.SYSTEM_ADMIN


@dataclass(frozen=True)
class Webhook:
    id: uuid.UUID
    arr_type: ArrType
    username: str
    password: bytes
    user_id: uuid.UUID


@dataclass(frozen=True)
class MatrixRoom:
    id: uuid.UUID
    room_id: str
    webhook_id: uuid.UUID


def _user(row) -> User:
    return User(
        id=uuid.UUID(row["id"]),
        service_username=row["service_username"],
        user_role=UserRole(row["user_role"]),
    )


def _webhook(row) -> Webhook:
    return Webhook(
        id=uuid.UUID(row["id"]),
        arr_type=ArrType(row["arr_type"]),
        username=row["username"],
        password=bytes(row["password"]),
        user_id=uuid.UUID(row["user_id"]),
    )


def _room(row) -> MatrixRoom:
    return MatrixRoom(
        id=uuid.UUID(row["id"]),
        room_id=row["room_id"],
        webhook_id=uuid.UUID(row["webhook_id"]),
    )


class WebhookStore:
    def __init__(self, db: Database, log: TraceLogger, pool_size: int = DEFAULT_POOL_SIZE) -> None:
        self.db = db
        self.log = log
        self._slots = asyncio.Semaphore(max(1, pool_size))

    @asynccontextmanager
    async def _checkout(self, what: str) -> AsyncIterator:
        async with self._slots:
            try:
                async with self.db.acquire() as conn:
                    yield conn
            except TransientInfraError:
                raise
            except Exception as e:
                self.log.exception(f"Database operation failed: {what}")
                raise TransientInfraError(f"database operation failed: {what}") from e

    # ---- users ----

    async def any_users(self) -> bool:
        async with self._checkout("any_users") as conn:
            row = await conn.fetchrow("SELECT id FROM users LIMIT 1")
        return row is not None

    async def create_user(self, username: str, role: UserRole = UserRole.ADMIN) -> User:
        user = User(id=uuid.uuid4(), service_username=username, user_role=role)
        async with self._checkout("create_user") as conn:
            await conn.execute(
                "INSERT INTO users (id, service_username, user_role) VALUES ($1, $2, $3)",
                str(user.id), user.service_username, user.user_role.value,
            )
        return user

    async def get_user_by_username(self, username: str) -> Optional[User]:
        async with self._checkout("get_user_by_username") as conn:
            row = await conn.fetchrow(
                "SELECT id, service_username, user_role FROM users WHERE service_username=$1",
                str(username),
            )
        return _user(row) if row else None

    # ---- webhooks ----

    async def create_webhook(
        self, arr_type: ArrType, username: str, password_hash: bytes, owner: User
    ) -> Webhook:
        webhook = Webhook(
            id=uuid.uuid4(),
            arr_type=arr_type,
            username=username,
            password=password_hash,
            user_id=owner.id,
        )
        async with self._checkout("create_webhook") as conn:
            await conn.execute("""
                INSERT INTO webhooks (id, arr_type, username, password, user_id)
                VALUES ($1, $2, $3, $4, $5)
            """, str(webhook.id), webhook.arr_type.value, webhook.username,
                webhook.password, str(webhook.user_id))
        return webhook

    async def get_webhook(self, webhook_id: uuid.UUID) -> Optional[Webhook]:
        async with self._checkout("get_webhook") as conn:
            row = await conn.fetchrow(
                "SELECT id, arr_type, username, password, user_id FROM webhooks WHERE id=$1",
                str(webhook_id),
            )
        return _webhook(row) if row else None

    async def list_webhooks(self, owner_id: Optional[uuid.UUID] = None) -> List[Webhook]:
        async with self._checkout("list_webhooks") as conn:
            if owner_id is None:
                rows = await conn.fetch(
                    "SELECT id, arr_type, username, password, user_id FROM webhooks ORDER BY id"
                )
            else:
                rows = await conn.fetch(
                    "SELECT id, arr_type, username, password, user_id FROM webhooks "
                    "WHERE user_id=$1 ORDER BY id",
                    str(owner_id),
                )
        return [_webhook(r) for r in rows]

    async def delete_webhook(self, webhook_id: uuid.UUID) -> None:
        # Bindings go first so SQLite without foreign_keys still cascades.
        async with self._checkout("delete_webhook") as conn:
            async with conn.transaction():
                await conn.execute("DELETE FROM matrix_rooms WHERE webhook_id=$1", str(webhook_id))
                await conn.execute("DELETE FROM webhooks WHERE id=$1", str(webhook_id))

    # ---- rooms ----

    async def create_room(self, room_id: str, webhook: Webhook) -> MatrixRoom:
        room = MatrixRoom(id=uuid.uuid4(), room_id=str(room_id), webhook_id=webhook.id)
        async with self._checkout("create_room") as conn:
            await conn.execute(
                "INSERT INTO matrix_rooms (id, room_id, webhook_id) VALUES ($1, $2, $3)",
                str(room.id), room.room_id, str(room.webhook_id),
            )
        return room

    async def get_rooms(self, webhook_id: uuid.UUID) -> List[MatrixRoom]:
        async with self._checkout("get_rooms") as conn:
            rows = await conn.fetch(
                "SELECT id, room_id, webhook_id FROM matrix_rooms WHERE webhook_id=$1",
                str(webhook_id),
            )
        return [_room(r) for r in rows]

    async def get_all_room_ids(self) -> List[str]:
        async with self._checkout("get_all_room_ids") as conn:
            rows = await conn.fetch("SELECT DISTINCT room_id FROM matrix_rooms ORDER BY room_id")
        return [r["room_id"] for r in rows]
