from __future__ import annotations

from collections.abc import Iterable, Sequence

import pytest
from rich.console import RenderableType

from botfleet.cli.render import OutputSink
from botfleet.core.types import ContactRef, Criteria, DirectoryKind, DirectoryRef, RoomRef, match_criteria
from botfleet.errors import DirectoryLookupError
from botfleet.sessions.base import Session


class FakeSession(Session):
    def __init__(
        self,
        session_id: str = "bot0",
        *,
        contacts: Iterable[ContactRef] = (),
        rooms: Iterable[RoomRef] = (),
    ) -> None:
        super().__init__(session_id)
        self.contacts = list(contacts)
        self.rooms = list(rooms)
        self.sent: list[tuple[DirectoryRef, str]] = []
        self.lookups: list[tuple[DirectoryKind, Criteria | None]] = []
        self.failing: set[DirectoryKind] = set()
        self.start_error: Exception | None = None
        self.started_count = 0
        self.stopped = False

    async def start(self) -> None:
        self.started_count += 1
        if self.start_error is not None:
            raise self.start_error

    async def stop(self) -> None:
        self.stopped = True

    async def find_one(self, kind: DirectoryKind, criteria: Criteria) -> DirectoryRef | None:
        matches = await self.find_all(kind, criteria)
        return matches[0] if matches else None

    async def find_all(self, kind: DirectoryKind, criteria: Criteria | None = None) -> list[DirectoryRef]:
        self.lookups.append((kind, criteria))
        if kind in self.failing:
            raise DirectoryLookupError(f"{kind} directory unavailable")
        refs: list[DirectoryRef] = list(self.rooms if kind is DirectoryKind.ROOM else self.contacts)
        return [ref for ref in refs if match_criteria(ref, criteria)]

    async def say(self, ref: DirectoryRef, content: str) -> None:
        self.sent.append((ref, content))


class RecordingSink(OutputSink):
    def __init__(self) -> None:
        self.lines: list[str] = []
        self.errors: list[str] = []
        self.tables: list[tuple[tuple[str, ...], list[tuple[str, ...]]]] = []

    def log(self, *parts: object) -> None:
        self.lines.append(" ".join(str(part) for part in parts))

    def error(self, message: str) -> None:
        self.errors.append(message)

    def table(self, columns: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
        self.tables.append((tuple(columns), [tuple(row) for row in rows]))

    def emit(self, renderable: RenderableType) -> None:
        self.lines.append(str(renderable))

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


ADAM = ContactRef(id="c-adam", name="Adam", alias="Big A")
BOB = ContactRef(id="c-bob", name="Bob", alias=None)
FAMILY = RoomRef(id="r-family", topic="Family Chat")
WORK = RoomRef(id="r-work", topic="Work Stuff")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession(contacts=[ADAM, BOB], rooms=[FAMILY, WORK])
