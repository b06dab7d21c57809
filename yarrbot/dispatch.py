"""Outbound send queue, inbound event inbox and the workers draining them.

The coordinator owns two bounded queues. Webhook fan-out and command replies
land in the outbox as :class:`RelayTask` items and are sent by one or more
send workers. Room events surfaced by maubot land in the inbox and are handed,
one at a time, to the room message handler or the invite handler by the sync
worker.

Shutdown is broadcast through a :class:`ShutdownSignal`. Every worker races
its queue wait against it, so an idle worker stops at once; a send worker
that already holds a task finishes sending it first.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from mautrix.types import Format, MessageType, RoomID, TextMessageEventContent

from .message import Message
from .room_events import RoomInvite, RoomMessage

DEFAULT_QUEUE_SIZE = 100
DEFAULT_SHUTDOWN_TIMEOUT = 10.0

EventHandler = Callable[[Any], Awaitable[None]]


class ShutdownSignal:
    """One-shot broadcast: once triggered, every waiter wakes and stays woken."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def trigger(self) -> None:
        self._event.set()

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep unless shutdown fires first. Returns False if interrupted."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=max(0.0, seconds))
        except asyncio.TimeoutError:
            return True
        return False


@dataclass(frozen=True)
class RelayTask:
    room_id: RoomID
    message: Message


async def next_item(queue: asyncio.Queue, shutdown: ShutdownSignal) -> Optional[Any]:
    """Wait for the next queue item, or ``None`` once shutdown fires."""
    if shutdown.is_set:
        return None
    getter = asyncio.ensure_future(queue.get())
    stopper = asyncio.ensure_future(shutdown.wait())
    try:
        done, _ = await asyncio.wait({getter, stopper}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        getter.cancel()
        stopper.cancel()
        raise
    if getter in done:
        stopper.cancel()
        return getter.result()
    getter.cancel()
    return None


class SendWorker:
    def __init__(
        self,
        client,
        queue: asyncio.Queue,
        shutdown: ShutdownSignal,
        log: logging.Logger,
        message_type: str = "m.notice",
    ) -> None:
        self.client = client
        self.queue = queue
        self.shutdown = shutdown
        self.log = log
        self.message_type = MessageType(message_type)

    async def run(self) -> None:
        while not self.shutdown.is_set:
            task = await next_item(self.queue, self.shutdown)
            if task is None:
                break
            try:
                await self.send(task)
            finally:
                self.queue.task_done()
        self.log.debug("Send worker stopped")

    async def send(self, task: RelayTask) -> bool:
        content = TextMessageEventContent(
            msgtype=self.message_type,
            body=task.message.plain,
            format=Format.HTML,
            formatted_body=task.message.html,
        )
        try:
            await self.client.send_message(task.room_id, content)
            return True
        except Exception:
            self.log.exception(f"Send to {task.room_id} failed, dropping message")
            return False


class SyncWorker:
    def __init__(
        self,
        queue: asyncio.Queue,
        shutdown: ShutdownSignal,
        log: logging.Logger,
        on_message: EventHandler,
        on_invite: EventHandler,
    ) -> None:
        self.queue = queue
        self.shutdown = shutdown
        self.log = log
        self.on_message = on_message
        self.on_invite = on_invite

    async def run(self) -> None:
        while not self.shutdown.is_set:
            item = await next_item(self.queue, self.shutdown)
            if item is None:
                break
            try:
                await self.dispatch(item)
            except Exception:
                self.log.exception(f"Handler failed for {type(item).__name__}")
            finally:
                self.queue.task_done()
        self.log.debug("Sync worker stopped")

    async def dispatch(self, item: Any) -> None:
        if isinstance(item, RoomMessage):
            await self.on_message(item)
        elif isinstance(item, RoomInvite):
            await self.on_invite(item)
        else:
            self.log.debug(f"Ignoring unknown inbox item {item!r}")


class DispatchCoordinator:
    def __init__(
        self,
        client,
        log: logging.Logger,
        message_type: str = "m.notice",
        send_queue_size: int = DEFAULT_QUEUE_SIZE,
        inbox_size: int = DEFAULT_QUEUE_SIZE,
        send_workers: int = 1,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
    ) -> None:
        self.client = client
        self.log = log
        self.message_type = message_type
        self.shutdown_signal = ShutdownSignal()
        self.outbox: asyncio.Queue = asyncio.Queue(maxsize=max(1, send_queue_size))
        self.inbox: asyncio.Queue = asyncio.Queue(maxsize=max(1, inbox_size))
        self.send_workers = max(1, send_workers)
        self.shutdown_timeout = shutdown_timeout
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks) and not self.shutdown_signal.is_set

    def start(self, on_message: EventHandler, on_invite: EventHandler) -> None:
        if self._tasks:
            raise RuntimeError("dispatch coordinator already started")
        loop = asyncio.get_running_loop()
        for i in range(self.send_workers):
            worker = SendWorker(self.client, self.outbox, self.shutdown_signal,
                                self.log.getChild(f"send{i}"), self.message_type)
            self._tasks.append(loop.create_task(worker.run()))
        sync = SyncWorker(self.inbox, self.shutdown_signal, self.log.getChild("sync"),
                          on_message, on_invite)
        self._tasks.append(loop.create_task(sync.run()))
        self.log.info(f"Started {self.send_workers} send worker(s) and the sync worker")

    async def submit(self, room_id: RoomID, message: Message) -> bool:
        """Queue one message for ``room_id``; waits while the outbox is full."""
        if self.shutdown_signal.is_set:
            self.log.warning(f"Refusing message for {room_id}: shutting down")
            return False
        putter = asyncio.ensure_future(self.outbox.put(RelayTask(room_id, message)))
        stopper = asyncio.ensure_future(self.shutdown_signal.wait())
        try:
            done, _ = await asyncio.wait({putter, stopper}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            putter.cancel()
            stopper.cancel()
            raise
        if putter in done:
            stopper.cancel()
            return True
        putter.cancel()
        self.log.warning(f"Refusing message for {room_id}: shutting down")
        return False

    async def fan_out(self, room_ids: Iterable[RoomID], message: Message) -> int:
        queued = 0
        for room_id in room_ids:
            if await self.submit(room_id, message):
                queued += 1
        return queued

    def enqueue_event(self, item: Any) -> bool:
        if self.shutdown_signal.is_set:
            self.log.debug(f"Dropping {type(item).__name__}: shutting down")
            return False
        try:
            self.inbox.put_nowait(item)
        except asyncio.QueueFull:
            self.log.warning(f"Inbox full, dropping {type(item).__name__}")
            return False
        return True

    async def shutdown(self) -> None:
        self.shutdown_signal.trigger()
        tasks, self._tasks = self._tasks, []
        if not tasks:
            return
        self.log.info("Waiting for dispatch workers to finish")
        done, pending = await asyncio.wait(tasks, timeout=self.shutdown_timeout)
        if pending:
            self.log.warning(
                f"{len(pending)} worker(s) still running after {self.shutdown_timeout}s, "
                "cancelling them; possible data loss"
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                self.log.error(f"Worker exited with error: {task.exception()!r}")
        if not self.outbox.empty():
            self.log.warning(f"Dropped {self.outbox.qsize()} unsent message(s) on shutdown")
        self.log.info("Dispatch workers stopped")
