import pytest

from yarrbot.initialization import first_time_init, is_user_id, rejoin_rooms
from yarrbot.store import UserRole


@pytest.mark.parametrize("value, expected", [
    ("@admin:example.com", True),
    ("@admin:example.com:8448", True),
    ("admin:example.com", False),
    ("@admin", False),
    ("", False),
    (None, False),
])
def test_is_user_id(value, expected):
    assert is_user_id(value) == expected


async def test_creates_first_system_admin(store, log):
    user = await first_time_init(store, "@admin:example.com", log)
    assert user.user_role == UserRole.SYSTEM_ADMIN
    assert user.is_system_admin
    assert await store.get_user_by_username("@admin:example.com") == user


async def test_skips_when_users_exist(store, log, admin):
    assert await first_time_init(store, "@other:example.com", log) is None
    assert len(store.users) == 1


async def test_invalid_initial_admin(store, log, caplog):
    assert await first_time_init(store, "not-a-user", log) is None
    assert not store.users
    assert "not a valid Matrix user ID" in caplog.text


async def test_rejoin_rooms_continues_past_failures(client, store, log, sonarr_hook):
    await store.create_room("!broken:example.com", sonarr_hook)

    async def join(room_id, *args, **kwargs):
        if room_id == "!broken:example.com":
            raise RuntimeError("gone")
        return room_id

    client.join_room.side_effect = join
    failed = await rejoin_rooms(client, store, log)
    assert failed == ["!broken:example.com"]
    assert client.join_room.await_count == 2


async def test_rejoin_rooms_store_failure(client, store, log):
    store.fail.add("get_all_room_ids")
    assert await rejoin_rooms(client, store, log) == []
    client.join_room.assert_not_awaited()
