import asyncio
import logging
import re
from typing import List, Optional

from .errors import TransientInfraError
from .store import User, UserRole, WebhookStore

_USER_ID_RE = re.compile(r"^@[a-z0-9._=\-/+]+:[A-Za-z0-9.\-\[\]:]+$")


def is_user_id(value: Optional[str]) -> bool:
    return bool(value) and bool(_USER_ID_RE.match(value))


async def first_time_init(store: WebhookStore, initial_admin: Optional[str],
                          log: logging.Logger) -> Optional[User]:
    """Create ``initial_admin`` as a system admin if nobody can use the bot yet."""
    if await store.any_users():
        log.debug("Users exist, skipping first-time initialization")
        return None
    if not is_user_id(initial_admin):
        log.error(f"initial_admin {initial_admin!r} is not a valid Matrix user ID; nobody can manage webhooks")
        return None
    user = await store.create_user(initial_admin, UserRole.SYSTEM_ADMIN)
    log.info(f"{initial_admin} may now interact with Yarrbot")
    return user


async def rejoin_rooms(client, store: WebhookStore, log: logging.Logger) -> List[str]:
    """Join every room a webhook is bound to; returns the rooms that failed."""
    try:
        room_ids = await store.get_all_room_ids()
    except TransientInfraError:
        log.error("Could not load bound rooms, skipping rejoin")
        return []
    if not room_ids:
        return []
    results = await asyncio.gather(*(client.join_room(r) for r in room_ids), return_exceptions=True)
    failed = []
    for room_id, res in zip(room_ids, results):
        if isinstance(res, Exception):
            log.error(f"Failed to rejoin {room_id}: {res}")
            failed.append(room_id)
    log.info(f"Rejoined {len(room_ids) - len(failed)}/{len(room_ids)} bound room(s)")
    return failed
