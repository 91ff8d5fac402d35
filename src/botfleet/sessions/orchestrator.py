"""Fleet orchestration: start sessions, route their events, attach the console."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol
from urllib.parse import quote

from loguru import logger

from botfleet.cli.console import InteractiveConsole
from botfleet.cli.render import SinkSwitch
from botfleet.core.resolver import resolve_reply_target
from botfleet.core.types import MessageContext, ScanStatus
from botfleet.errors import ResolutionError
from botfleet.sessions.base import Session

QRCODE_URL = "https://wechaty.js.org/qrcode/{}"
REDACTED_MESSAGE = "Received a message"


class SessionRole(StrEnum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class LifecycleState(StrEnum):
    CREATED = "created"
    STARTED = "started"
    LOGGED_IN = "logged_in"


@dataclass
class SessionHandle:
    """Orchestrator-side state of one session."""

    session: Session
    role: SessionRole
    state: LifecycleState = LifecycleState.CREATED

    @property
    def id(self) -> str:
        return self.session.id

    @property
    def is_primary(self) -> bool:
        return self.role is SessionRole.PRIMARY


class ConsoleFactory(Protocol):
    def __call__(self, session: Session, prompt: str, on_close: Callable[[], None]) -> InteractiveConsole: ...


class SessionOrchestrator:
    """Start every session and fan their events out to per-session handlers."""

    def __init__(
        self,
        sessions: Sequence[Session],
        *,
        primary_index: int,
        output: SinkSwitch,
        trigger: re.Pattern[str],
        reply_template: str,
        console_factory: ConsoleFactory | None = None,
    ) -> None:
        self.output = output
        self.handles = [
            SessionHandle(session, SessionRole.PRIMARY if index == primary_index else SessionRole.SECONDARY)
            for index, session in enumerate(sessions)
        ]
        self.console: InteractiveConsole | None = None
        self._trigger = trigger
        self._reply_template = reply_template
        self._console_factory = console_factory or self._default_console
        self._console_task: asyncio.Task[None] | None = None
        self._closed = asyncio.Event()
        for handle in self.handles:
            self._register(handle)

    @property
    def primary(self) -> SessionHandle:
        return next(handle for handle in self.handles if handle.is_primary)

    async def start(self) -> None:
        self.output.log("Starting all sessions...")
        results = await asyncio.gather(
            *(handle.session.start() for handle in self.handles),
            return_exceptions=True,
        )
        for handle, result in zip(self.handles, results, strict=True):
            if isinstance(result, BaseException):
                logger.opt(exception=result).debug("session.start.error session_id={}", handle.id)
                self.output.error(f"[{handle.id}] failed to start: {result}")

    async def run(self) -> None:
        """Start the fleet and keep it running until the console closes."""
        starting = asyncio.create_task(self.start())
        closing = asyncio.create_task(self._closed.wait())
        try:
            await asyncio.wait({starting, closing}, return_when=asyncio.FIRST_COMPLETED)
            await closing
        finally:
            starting.cancel()
            closing.cancel()
            await self.stop()

    def close(self) -> None:
        self._closed.set()

    async def stop(self) -> None:
        if self._console_task is not None and not self._console_task.done():
            self._console_task.cancel()
        for handle in self.handles:
            try:
                await handle.session.stop()
            except Exception:
                logger.exception("session.stop.error session_id={}", handle.id)

    def _register(self, handle: SessionHandle) -> None:
        session = handle.session

        async def on_started() -> None:
            await self._on_started(handle)

        async def on_logged_in(account_name: str) -> None:
            await self._on_logged_in(handle, account_name)

        async def on_scan(qrcode: str, status: ScanStatus) -> None:
            await self._on_scan(handle, qrcode, status)

        async def on_message(message: MessageContext) -> None:
            await self._on_message(handle, message)

        session.on_started(on_started)
        session.on_logged_in(on_logged_in)
        session.on_scan_requested(on_scan)
        session.on_message(on_message)

    async def _on_started(self, handle: SessionHandle) -> None:
        handle.state = LifecycleState.STARTED
        self.output.log(f"[{handle.id}] session has started!")

    async def _on_logged_in(self, handle: SessionHandle, account_name: str) -> None:
        handle.state = LifecycleState.LOGGED_IN
        self.output.log(f"[{handle.id}] User {account_name} logged in")
        if not handle.is_primary or self.console is not None:
            return
        self.output.log("Starting console...")
        self.console = self._console_factory(handle.session, f"[{handle.id}] {account_name} ", self.close)
        self._console_task = asyncio.create_task(self.console.run())

    async def _on_scan(self, handle: SessionHandle, qrcode: str, status: ScanStatus) -> None:
        if status in (ScanStatus.WAITING, ScanStatus.TIMEOUT):
            url = QRCODE_URL.format(quote(qrcode, safe=""))
            self.output.log(f"[{handle.id}] Scan QR code to log in: status={status.name} || {url}")
            return
        self.output.log(f"[{handle.id}] on(scan) status={status.name}")

    async def _on_message(self, handle: SessionHandle, message: MessageContext) -> None:
        shown = str(message) if handle.is_primary else REDACTED_MESSAGE
        self.output.log(f"[{handle.id}] : {shown}")
        if self._trigger.search(message.text) is None:
            return
        try:
            target = resolve_reply_target(message)
        except ResolutionError as exc:
            self.output.error(f"[{handle.id}] {exc}, message dropped")
            return
        try:
            await handle.session.say(target, self._reply_template.format(session_id=handle.id))
        except Exception as exc:
            logger.opt(exception=exc).debug("session.reply.error session_id={}", handle.id)
            self.output.error(f"[{handle.id}] reply to {target} failed: {exc}")

    def _default_console(self, session: Session, prompt: str, on_close: Callable[[], None]) -> InteractiveConsole:
        return InteractiveConsole(session, prompt, output=self.output, on_close=on_close)
