"""Console command routing and execution."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from loguru import logger

from botfleet.core.search import DirectorySearch, SearchPattern
from botfleet.core.tokenizer import Token
from botfleet.core.types import Directory, DirectoryKind, Target
from botfleet.errors import DirectoryLookupError, PatternError, UsageError

if TYPE_CHECKING:
    from botfleet.cli.render import OutputSink

CommandHandler = Callable[[Sequence[Token]], Awaitable[None]]

AVAILABLE_COMMANDS = ("send", "ls", "search", "help")

USAGES: dict[str, str] = {
    "help": "Usage: help <command>\nAvailable commands: " + ", ".join(AVAILABLE_COMMANDS),
    "send": "Usage: send <target> -t <room|contact> -m <message>",
    "ls": "Usage: ls [--contact | -c | --room | -r]",
    "search": "Usage: search <pattern> [-t | --targetType <room|contact>]",
}

TARGET_TYPE_FLAGS = frozenset({"t", "targetType"})
MESSAGE_FLAGS = frozenset({"m", "message"})
CONTACT_FLAGS = frozenset({"c", "contact"})
ROOM_FLAGS = frozenset({"r", "room"})


def parse_target_type(value: str | None, command: str) -> DirectoryKind | None:
    if value is None:
        return None
    try:
        return DirectoryKind(value)
    except ValueError:
        raise UsageError(f"Invalid target type {value}", command) from None


class CommandDispatcher:
    """Validate console tokens and run the matching command."""

    def __init__(self, directory: Directory, sink: OutputSink) -> None:
        self._directory = directory
        self._sink = sink
        self._search = DirectorySearch(directory, sink)
        self._handlers: dict[str, CommandHandler] = {
            "send": self._send,
            "ls": self._ls,
            "search": self._search_command,
            "help": self._help,
        }

    async def execute(self, tokens: Sequence[Token]) -> None:
        if not tokens:
            return
        first = tokens[0]
        name = f"-{first.flag}" if first.is_flag else first.value
        handler = self._handlers.get(name or "")
        if handler is None:
            self._sink.log("Unknown command:", name)
            return

        try:
            await handler(tokens[1:])
        except UsageError as exc:
            if str(exc):
                self._sink.log(str(exc))
            self._sink.log(USAGES[exc.command or name])
        except PatternError as exc:
            self._sink.error(str(exc))
        except DirectoryLookupError as exc:
            logger.opt(exception=exc).debug("console.command.lookup_error command={}", name)
            self._sink.error(f"Error during {name}: {exc}")

    async def _send(self, args: Sequence[Token]) -> None:
        target: str | None = None
        kind = DirectoryKind.CONTACT
        message: str | None = None
        seen: set[frozenset[str]] = set()

        for arg in args:
            if arg.flag in TARGET_TYPE_FLAGS and TARGET_TYPE_FLAGS not in seen:
                seen.add(TARGET_TYPE_FLAGS)
                kind = parse_target_type(arg.value, "send") or DirectoryKind.CONTACT
            elif arg.flag in MESSAGE_FLAGS and MESSAGE_FLAGS not in seen:
                seen.add(MESSAGE_FLAGS)
                message = arg.value or ""
            elif not arg.is_flag and target is None:
                target = arg.value or ""
            else:
                self._sink.log("Unknown option or too many targets:", arg.value or f"-{arg.flag}")
                self._sink.log(USAGES["send"])

        if not target or not message:
            raise UsageError(command="send")
        await self._send_message(Target(kind, target), message)

    async def _send_message(self, target: Target, message: str) -> None:
        ref = await self._directory.find_one(target.kind, target.criteria())
        if ref is None:
            self._sink.error(f'{target.kind} "{target.name}" not found.')
            return
        await self._directory.say(ref, message)
        self._sink.log(f'Message sent to {target.kind} "{target.name}": {message}')

    async def _ls(self, args: Sequence[Token]) -> None:
        kinds: list[DirectoryKind] = []
        for arg in args:
            if not arg.is_flag or arg.value is not None:
                raise UsageError(
                    f"Unexpected argument {arg.value}. You should specify a flag instead of an argument.", "ls"
                )
            if arg.flag in CONTACT_FLAGS:
                kind = DirectoryKind.CONTACT
            elif arg.flag in ROOM_FLAGS:
                kind = DirectoryKind.ROOM
            else:
                raise UsageError(f"Invalid flag {arg.flag}", "ls")
            if kind not in kinds:
                kinds.append(kind)

        await self._search.list_all(kinds or [DirectoryKind.ROOM, DirectoryKind.CONTACT])

    async def _search_command(self, args: Sequence[Token]) -> None:
        pattern: str | None = None
        kind: DirectoryKind | None = None

        for arg in args:
            if arg.flag in TARGET_TYPE_FLAGS:
                kind = parse_target_type(arg.value, "search")
            elif not arg.is_flag and pattern is None:
                pattern = arg.value or ""
            else:
                shown = arg.value or f"-{arg.flag}"
                raise UsageError(f"Unknown option or too many patterns: {shown}", "search")

        if not pattern:
            raise UsageError("Please provide a search pattern.", "search")
        await self._search.search(SearchPattern(pattern), kind)

    async def _help(self, args: Sequence[Token]) -> None:
        if not args:
            self._sink.log(USAGES["help"])
            return
        first = args[0]
        if first.is_flag:
            raise UsageError(f"Unexpected flag {first.flag}", "help")
        if first.value not in self._handlers:
            raise UsageError(f"Unknown command {first.value}", "help")
        self._sink.log(USAGES[first.value])
