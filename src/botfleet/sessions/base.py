"""Base session interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from typing import Any

from blinker import Signal

from botfleet.core.types import Criteria, DirectoryKind, DirectoryRef, MessageContext, ScanStatus

StartedHandler = Callable[[], Coroutine[Any, Any, None]]
LoggedInHandler = Callable[[str], Coroutine[Any, Any, None]]
ScanHandler = Callable[[str, ScanStatus], Coroutine[Any, Any, None]]
MessageHandler = Callable[[MessageContext], Coroutine[Any, Any, None]]


class Session(ABC):
    """One independently authenticated messaging connection.

    Lifecycle and message events are published through blinker signals;
    subscribers receive them as coroutines on the running loop.
    """

    def __init__(self, session_id: str) -> None:
        self.id = session_id
        self._started = Signal("botfleet.started")
        self._logged_in = Signal("botfleet.logged_in")
        self._scan_requested = Signal("botfleet.scan_requested")
        self._message_received = Signal("botfleet.message_received")

    @abstractmethod
    async def start(self) -> None:
        """Connect the session; events arrive through the signals."""

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect the session."""

    @abstractmethod
    async def find_one(self, kind: DirectoryKind, criteria: Criteria) -> DirectoryRef | None:
        """Return the first directory entry matching the criteria."""

    @abstractmethod
    async def find_all(self, kind: DirectoryKind, criteria: Criteria | None = None) -> list[DirectoryRef]:
        """Return every directory entry matching the criteria."""

    @abstractmethod
    async def say(self, ref: DirectoryRef, content: str) -> None:
        """Send text to a contact or room."""

    def on_started(self, handler: StartedHandler) -> Callable[[], None]:
        async def _receiver(sender: Any) -> None:
            await handler()

        return self._subscribe(self._started, _receiver)

    def on_logged_in(self, handler: LoggedInHandler) -> Callable[[], None]:
        async def _receiver(sender: Any, *, account_name: str) -> None:
            await handler(account_name)

        return self._subscribe(self._logged_in, _receiver)

    def on_scan_requested(self, handler: ScanHandler) -> Callable[[], None]:
        async def _receiver(sender: Any, *, qrcode: str, status: ScanStatus) -> None:
            await handler(qrcode, status)

        return self._subscribe(self._scan_requested, _receiver)

    def on_message(self, handler: MessageHandler) -> Callable[[], None]:
        async def _receiver(sender: Any, *, message: MessageContext) -> None:
            await handler(message)

        return self._subscribe(self._message_received, _receiver)

    async def publish_started(self) -> None:
        await self._started.send_async(self)

    async def publish_logged_in(self, account_name: str) -> None:
        await self._logged_in.send_async(self, account_name=account_name)

    async def publish_scan_requested(self, qrcode: str, status: ScanStatus) -> None:
        await self._scan_requested.send_async(self, qrcode=qrcode, status=status)

    async def publish_message(self, message: MessageContext) -> None:
        await self._message_received.send_async(self, message=message)

    @staticmethod
    def _subscribe(signal: Signal, receiver: Callable[..., Coroutine[Any, Any, None]]) -> Callable[[], None]:
        signal.connect(receiver, weak=False)
        return lambda: signal.disconnect(receiver)
