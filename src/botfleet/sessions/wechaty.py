"""WeChat session adapter backed by python-wechaty."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from botfleet.core.types import (
    ContactRef,
    Criteria,
    DirectoryKind,
    DirectoryRef,
    MessageContext,
    RoomRef,
    ScanStatus,
    match_criteria,
)
from botfleet.errors import DirectoryLookupError
from botfleet.sessions.base import Session


@dataclass(frozen=True)
class WechatyConfig:
    """python-wechaty adapter config."""

    cache_dir: Path
    puppet: str
    token: str | None = None
    endpoint: str | None = None


class WechatySession(Session):
    """Session driving one python-wechaty bot."""

    def __init__(self, session_id: str, config: WechatyConfig) -> None:
        super().__init__(session_id)
        self._config = config
        self._bot: Any = None
        self._natives: dict[str, Any] = {}

    async def start(self) -> None:
        self._bot = self._build_bot()
        self._bot.on("start", self._on_start)
        self._bot.on("login", self._on_login)
        self._bot.on("scan", self._on_scan)
        self._bot.on("message", self._on_message)
        logger.info("wechaty.session.start session_id={} puppet={}", self.id, self._config.puppet)
        await self._bot.start()

    async def stop(self) -> None:
        if self._bot is None:
            return
        await self._bot.stop()
        self._bot = None
        self._natives.clear()
        logger.info("wechaty.session.stopped session_id={}", self.id)

    async def find_one(self, kind: DirectoryKind, criteria: Criteria) -> DirectoryRef | None:
        matches = await self.find_all(kind, criteria)
        return matches[0] if matches else None

    async def find_all(self, kind: DirectoryKind, criteria: Criteria | None = None) -> list[DirectoryRef]:
        bot = self._require_bot()
        try:
            if kind is DirectoryKind.ROOM:
                natives = await bot.Room.find_all()
                refs: list[DirectoryRef] = list(await asyncio.gather(*(self._room_ref(room) for room in natives)))
            else:
                natives = await bot.Contact.find_all()
                refs = list(await asyncio.gather(*(self._contact_ref(contact) for contact in natives)))
        except Exception as exc:
            raise DirectoryLookupError(f"{kind} lookup failed: {exc}") from exc
        return [ref for ref in refs if match_criteria(ref, criteria)]

    async def say(self, ref: DirectoryRef, content: str) -> None:
        bot = self._require_bot()
        native = self._natives.get(ref.id)
        try:
            if native is None:
                native = bot.Room.load(ref.id) if isinstance(ref, RoomRef) else bot.Contact.load(ref.id)
            await native.say(content)
        except Exception as exc:
            raise DirectoryLookupError(f"cannot send to {ref}: {exc}") from exc

    def _build_bot(self) -> Any:
        from wechaty import Wechaty, WechatyOptions
        from wechaty_puppet import PuppetOptions

        options = WechatyOptions(
            name=str(self._config.cache_dir / self.id),
            puppet=self._config.puppet,
            puppet_options=PuppetOptions(token=self._config.token, end_point=self._config.endpoint),
        )
        return Wechaty(options)

    def _require_bot(self) -> Any:
        if self._bot is None:
            raise DirectoryLookupError(f"session {self.id} is not started")
        return self._bot

    async def _contact_ref(self, contact: Any) -> ContactRef:
        alias = await contact.alias()
        ref = ContactRef(id=contact.contact_id, name=contact.name or "", alias=alias or None)
        self._natives[ref.id] = contact
        return ref

    async def _room_ref(self, room: Any) -> RoomRef:
        ref = RoomRef(id=room.room_id, topic=await room.topic() or "")
        self._natives[ref.id] = room
        return ref

    async def _on_start(self, *_args: Any) -> None:
        await self.publish_started()

    async def _on_login(self, contact: Any) -> None:
        await self.publish_logged_in(contact.name or contact.contact_id)

    async def _on_scan(self, qrcode: str, status: Any, *_args: Any) -> None:
        try:
            scan_status = ScanStatus(int(status))
        except ValueError:
            scan_status = ScanStatus.UNKNOWN
        await self.publish_scan_requested(qrcode, scan_status)

    async def _on_message(self, msg: Any) -> None:
        room = msg.room()
        listener = msg.to()
        context = MessageContext(
            text=msg.text(),
            talker=await self._contact_ref(msg.talker()),
            is_from_self=msg.is_self(),
            room=await self._room_ref(room) if room is not None else None,
            listener=await self._contact_ref(listener) if listener is not None else None,
        )
        await self.publish_message(context)
