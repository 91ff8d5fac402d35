"""Directory search and listing for console commands."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, TypeVar

from loguru import logger

from botfleet.core.types import ContactRef, Directory, DirectoryKind, DirectoryRef, RoomRef
from botfleet.errors import PatternError

if TYPE_CHECKING:
    from botfleet.cli.render import OutputSink

DISPLAY_WIDTH = 35
CONTACT_COLUMNS = ("id", "alias", "name")
ROOM_COLUMNS = ("id", "topic")


class PatternMode(StrEnum):
    LITERAL = "literal"
    REGEX = "regex"


@dataclass(frozen=True)
class SearchPattern:
    """Search text typed by the operator.

    Text wrapped in a pair of slashes is a regular expression, anything else
    is matched literally. Matching is always case-insensitive.
    """

    raw: str
    case_insensitive: bool = True

    @property
    def mode(self) -> PatternMode:
        if len(self.raw) >= 2 and self.raw.startswith("/") and self.raw.endswith("/"):
            return PatternMode.REGEX
        return PatternMode.LITERAL

    def compile(self) -> re.Pattern[str]:
        flags = re.IGNORECASE if self.case_insensitive else 0
        if self.mode is PatternMode.LITERAL:
            return re.compile(re.escape(self.raw), flags)
        try:
            return re.compile(self.raw[1:-1], flags)
        except re.error as exc:
            raise PatternError(f"Invalid regular expression: {exc}") from exc


def truncate(text: str, limit: int = DISPLAY_WIDTH) -> str:
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def contact_rows(contacts: Iterable[ContactRef]) -> list[tuple[str, str, str]]:
    return [(truncate(c.id), truncate(c.alias or ""), truncate(c.name)) for c in contacts]


def room_rows(rooms: Iterable[RoomRef]) -> list[tuple[str, str]]:
    return [(truncate(r.id), truncate(r.topic)) for r in rooms]


def dedupe(refs: Iterable[DirectoryRef]) -> list[DirectoryRef]:
    """Drop repeated entries by id, keeping first-seen order."""
    unique: dict[str, DirectoryRef] = {}
    for ref in refs:
        unique.setdefault(ref.id, ref)
    return list(unique.values())


class DirectorySearch:
    """Search and enumerate one session's contacts and rooms."""

    def __init__(self, directory: Directory, sink: OutputSink) -> None:
        self._directory = directory
        self._sink = sink

    async def search(self, pattern: SearchPattern, kind: DirectoryKind | None = None) -> None:
        regex = pattern.compile()
        jobs: list[Awaitable[None]] = []
        if kind in (None, DirectoryKind.CONTACT):
            jobs.append(self._search_contacts(regex))
        if kind in (None, DirectoryKind.ROOM):
            jobs.append(self._search_rooms(regex))
        await self._run_independently(jobs, "search")

    async def list_all(self, kinds: Iterable[DirectoryKind]) -> None:
        jobs: list[Awaitable[None]] = []
        for kind in kinds:
            jobs.append(self.list_contacts() if kind is DirectoryKind.CONTACT else self.list_rooms())
        await self._run_independently(jobs, "ls")

    async def list_contacts(self) -> None:
        self._sink.log("Getting the list of all contacts...")
        contacts = await self._directory.find_all(DirectoryKind.CONTACT)
        self._sink.log("- List of Contacts:")
        self._sink.table(CONTACT_COLUMNS, contact_rows(_only(contacts, ContactRef)))

    async def list_rooms(self) -> None:
        self._sink.log("Getting the list of all rooms...")
        rooms = await self._directory.find_all(DirectoryKind.ROOM)
        self._sink.log("- List of Group Chats (Rooms):")
        self._sink.table(ROOM_COLUMNS, room_rows(_only(rooms, RoomRef)))

    async def _search_contacts(self, regex: re.Pattern[str]) -> None:
        self._sink.log(f"Searching contacts using {regex.pattern} ...")
        by_name, by_alias = await asyncio.gather(
            self._directory.find_all(DirectoryKind.CONTACT, {"name": regex}),
            self._directory.find_all(DirectoryKind.CONTACT, {"alias": regex}),
        )
        contacts = _only(dedupe([*by_name, *by_alias]), ContactRef)
        if not contacts:
            self._sink.log("No matching contacts found :(")
            return
        self._sink.log("- Matched Contacts:")
        self._sink.table(CONTACT_COLUMNS, contact_rows(contacts))

    async def _search_rooms(self, regex: re.Pattern[str]) -> None:
        self._sink.log(f"Searching rooms using {regex.pattern} ...")
        rooms = _only(await self._directory.find_all(DirectoryKind.ROOM, {"topic": regex}), RoomRef)
        if not rooms:
            self._sink.log("No matching rooms found :(")
            return
        self._sink.log("- Matched Rooms:")
        self._sink.table(ROOM_COLUMNS, room_rows(rooms))

    async def _run_independently(self, jobs: list[Awaitable[None]], command: str) -> None:
        results = await asyncio.gather(*jobs, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                logger.opt(exception=result).debug("console.{}.error", command)
                self._sink.error(f"Error during {command}: {result}")


T = TypeVar("T")


def _only(refs: Iterable[DirectoryRef], ref_type: type[T]) -> list[T]:
    return [ref for ref in refs if isinstance(ref, ref_type)]
