import logging
import random
from typing import Callable, Optional

from .dispatch import ShutdownSignal
from .errors import TransientInfraError
from .room_events import RoomInvite

DEFAULT_ATTEMPTS = 5
DEFAULT_BASE_DELAY_MS = 100
DEFAULT_MAX_JITTER_MS = 1000


class InviteHandler:
    """Accepts room invites from known users, declining everyone else.

    A join right after an invite can fail while the homeserver catches up on
    room state, so accepted invites are joined with exponential backoff:
    before attempt ``i`` (1-indexed) the handler waits
    ``2**(i-1) * base_delay_ms + uniform(0, max_jitter_ms)`` milliseconds.
    """

    def __init__(
        self,
        client,
        store,
        log: logging.Logger,
        shutdown: Optional[ShutdownSignal] = None,
        attempts: int = DEFAULT_ATTEMPTS,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        max_jitter_ms: int = DEFAULT_MAX_JITTER_MS,
        rng: Optional[random.Random] = None,
        sleep: Optional[Callable] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.log = log
        self.shutdown = shutdown or ShutdownSignal()
        self.attempts = max(1, attempts)
        self.base_delay_ms = base_delay_ms
        self.max_jitter_ms = max_jitter_ms
        self.rng = rng or random.Random()
        self._sleep = sleep or self.shutdown.sleep

    def delay_ms(self, attempt: int) -> float:
        return 2 ** (attempt - 1) * self.base_delay_ms + self.rng.uniform(0, self.max_jitter_ms)

    async def handle(self, invite: RoomInvite) -> bool:
        """Returns True once the bot has joined ``invite.room_id``."""
        if invite.state_key != self.client.mxid:
            self.log.debug(f"Ignoring invite for {invite.state_key} in {invite.room_id}")
            return False

        try:
            user = await self.store.get_user_by_username(invite.sender)
        except TransientInfraError:
            self.log.error(f"Could not check inviter {invite.sender}; leaving invite to {invite.room_id} pending")
            return False

        if user is None:
            self.log.warning(f"Declining invite to {invite.room_id} from unauthorized user {invite.sender}")
            try:
                await self.client.leave_room(invite.room_id)
            except Exception:
                self.log.exception(f"Failed to decline invite to {invite.room_id}")
            return False

        return await self._join_with_backoff(invite)

    async def _join_with_backoff(self, invite: RoomInvite) -> bool:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.attempts + 1):
            delay = self.delay_ms(attempt)
            if not await self._sleep(delay / 1000):
                self.log.info(f"Shutting down, abandoning join of {invite.room_id}")
                return False
            try:
                await self.client.join_room(invite.room_id, max_retries=0)
            except Exception as e:
                last_error = e
                self.log.debug(f"Join attempt {attempt}/{self.attempts} for {invite.room_id} failed: {e}")
                continue
            self.log.info(f"Joined {invite.room_id} after invite from {invite.sender}")
            return True
        self.log.error(f"Failed to join {invite.room_id} after {self.attempts} attempts: {last_error!r}")
        return False
