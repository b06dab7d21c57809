from typing import Optional, Type

from aiohttp import hdrs
from aiohttp.web import Request, Response

from maubot import MessageEvent, Plugin, PluginWebApp
from maubot.handlers import event, web
from mautrix.types import EventType, Membership, StateEvent
from mautrix.util.async_db import UpgradeTable
from mautrix.util.config import BaseProxyConfig, ConfigUpdateHelper

from .commands import CommandParser
from .dispatch import DispatchCoordinator
from .errors import TransientInfraError, YarrbotError
from .initialization import first_time_init, rejoin_rooms
from .invites import InviteHandler
from .migrations import upgrade_table
from .room_events import RoomInvite, RoomMessage, RoomMessageHandler
from .store import WebhookStore
from .webhooks import WebhookAuthenticator, WebhookRelay, WebhookTransformer, read_body

# ---------------- config ----------------

class PluginConfig(BaseProxyConfig):
    def do_update(self, h: ConfigUpdateHelper) -> None:
        # access
        h.copy("initial_admin")
        h.copy("password_length")
        # messages
        h.copy("server_name")
        h.copy("source_url")
        h.copy("message_type")     # m.text|m.notice
        # http
        h.copy("max_body_bytes")
        h.copy("allowed_methods")
        # dispatch
        h.copy("send_queue_size")
        h.copy("inbox_size")
        h.copy("send_workers")
        h.copy("database_pool_size")
        h.copy("shutdown_timeout")
        # invite backoff
        h.copy("invite.attempts")
        h.copy("invite.base_delay_ms")
        h.copy("invite.max_jitter_ms")

# ---------------- plugin ----------------

class YarrbotPlugin(Plugin):
    config: PluginConfig
    webapp: PluginWebApp
    coordinator: Optional[DispatchCoordinator] = None

    @classmethod
    def get_db_upgrade_table(cls) -> UpgradeTable:
        return upgrade_table

    @classmethod
    def get_config_class(cls) -> Type[BaseProxyConfig]:
        return PluginConfig

    async def start(self) -> None:
        self.config.load_and_update()
        cfg = self.config
        self.store = WebhookStore(self.database, self.log.getChild("store"),
                                  int(cfg["database_pool_size"] or 20))
        await first_time_init(self.store, cfg["initial_admin"], self.log)

        self.coordinator = DispatchCoordinator(
            self.client,
            self.log.getChild("dispatch"),
            message_type=cfg["message_type"] or "m.notice",
            send_queue_size=int(cfg["send_queue_size"] or 100),
            inbox_size=int(cfg["inbox_size"] or 100),
            send_workers=int(cfg["send_workers"] or 1),
            shutdown_timeout=float(cfg["shutdown_timeout"] or 10),
        )
        self.parser = CommandParser(self.client, self.store, self.log.getChild("commands"),
                                    password_length=cfg["password_length"],
                                    source_url=cfg["source_url"])
        self.room_handler = RoomMessageHandler(self.client, self.parser, self.coordinator,
                                               self.log.getChild("rooms"))
        self.invites = InviteHandler(
            self.client,
            self.store,
            self.log.getChild("invites"),
            shutdown=self.coordinator.shutdown_signal,
            attempts=int(cfg["invite.attempts"] or 5),
            base_delay_ms=int(cfg["invite.base_delay_ms"] or 100),
            max_jitter_ms=int(cfg["invite.max_jitter_ms"] or 1000),
        )
        self.relay = WebhookRelay(
            WebhookAuthenticator(self.store, self.log.getChild("auth")),
            WebhookTransformer(self.log.getChild("transformer"), cfg["server_name"]),
            self.store,
            self.coordinator,
            self.log.getChild("relay"),
        )
        self.coordinator.start(self.room_handler.handle, self.invites.handle)
        await rejoin_rooms(self.client, self.store, self.log)
        self.log.info(f"Webhook base URL: {self.webapp_url}")

    async def stop(self) -> None:
        if self.coordinator is not None:
            await self.coordinator.shutdown()

    # ---------------- room events ----------------

    @event.on(EventType.ROOM_MESSAGE)
    async def on_message(self, evt: MessageEvent) -> None:
        if self.coordinator is None or evt.sender == self.client.mxid:
            return
        self.coordinator.enqueue_event(RoomMessage(
            room_id=evt.room_id,
            sender=evt.sender,
            body=evt.content.body or "",
            msgtype=evt.content.msgtype,
        ))

    @event.on(EventType.ROOM_MEMBER)
    async def on_member(self, evt: StateEvent) -> None:
        if self.coordinator is None or evt.content.membership != Membership.INVITE:
            return
        self.coordinator.enqueue_event(RoomInvite(
            room_id=evt.room_id,
            sender=evt.sender,
            state_key=evt.state_key,
        ))

    # ---------------- web handlers ----------------

    @web.post("/webhook/{short_id}")
    async def handle_webhook_post(self, req: Request) -> Response:
        return await self._handle_webhook(req)

    @web.put("/webhook/{short_id}")
    async def handle_webhook_put(self, req: Request) -> Response:
        return await self._handle_webhook(req)

    async def _handle_webhook(self, req: Request) -> Response:
        if req.method not in set(self.config["allowed_methods"] or []):
            return Response(status=405, text="method_not_allowed")
        short_id = req.match_info["short_id"]
        try:
            raw = await read_body(req, int(self.config["max_body_bytes"] or 0))
            await self.relay.handle(short_id, req.headers.get(hdrs.AUTHORIZATION), raw)
        except TransientInfraError as e:
            self.log.error(f"Webhook {short_id} failed: {e}")
            return self._err_to_resp(e)
        except YarrbotError as e:
            self.log.debug(f"Webhook {short_id} rejected with {e.status}: {e}")
            return self._err_to_resp(e)
        except Exception:
            self.log.exception(f"Unexpected error handling webhook {short_id}")
            return Response(status=500, text="internal_error")
        return Response(status=200)

    def _err_to_resp(self, err: YarrbotError) -> Response:
        return Response(status=err.status, text=err.code)
