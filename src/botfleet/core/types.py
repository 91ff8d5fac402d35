"""Core value types shared by the console and sessions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import Protocol

Criteria = dict[str, str | re.Pattern[str]]


class DirectoryKind(StrEnum):
    """Kind of directory entry a command or lookup targets."""

    ROOM = "room"
    CONTACT = "contact"


class ScanStatus(IntEnum):
    """Login scan status reported by a session."""

    UNKNOWN = 0
    CANCEL = 1
    WAITING = 2
    SCANNED = 3
    CONFIRMED = 4
    TIMEOUT = 5


@dataclass(frozen=True)
class ContactRef:
    """One contact as seen by a session."""

    id: str
    name: str
    alias: str | None = None

    def __str__(self) -> str:
        return f"Contact<{self.name}>"


@dataclass(frozen=True)
class RoomRef:
    """One group chat as seen by a session."""

    id: str
    topic: str

    def __str__(self) -> str:
        return f"Room<{self.topic}>"


DirectoryRef = ContactRef | RoomRef


@dataclass(frozen=True)
class Target:
    """User supplied name of a directory entry."""

    kind: DirectoryKind
    name: str

    def criteria(self) -> Criteria:
        if self.kind is DirectoryKind.ROOM:
            return {"topic": self.name}
        return {"name": self.name}


@dataclass(frozen=True)
class MessageContext:
    """Inbound message payload consumed by the reply resolver."""

    text: str
    talker: ContactRef
    is_from_self: bool = False
    room: RoomRef | None = None
    listener: ContactRef | None = None

    def __str__(self) -> str:
        where = f"@{self.room}" if self.room is not None else ""
        return f"Message#[{self.talker}{where}] {self.text}"


def match_criteria(ref: DirectoryRef, criteria: Criteria | None) -> bool:
    """Check whether a directory entry satisfies every criterion.

    String criteria must equal the field, compiled patterns must match
    somewhere inside it. Missing fields never match.
    """

    if not criteria:
        return True
    for field_name, expected in criteria.items():
        actual = getattr(ref, field_name, None)
        if actual is None:
            return False
        if isinstance(expected, re.Pattern):
            if expected.search(actual) is None:
                return False
        elif actual != expected:
            return False
    return True


class Directory(Protocol):
    """Directory lookups and sends offered by one session."""

    async def find_one(self, kind: DirectoryKind, criteria: Criteria) -> DirectoryRef | None: ...

    async def find_all(self, kind: DirectoryKind, criteria: Criteria | None = None) -> list[DirectoryRef]: ...

    async def say(self, ref: DirectoryRef, content: str) -> None: ...
