"""Terminal output sinks for botfleet."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Protocol

from prompt_toolkit import PromptSession
from rich import box
from rich.console import Console, RenderableType
from rich.table import Table
from rich.text import Text


class OutputSink(ABC):
    """Serialized writer for everything shown on the terminal."""

    def log(self, *parts: object) -> None:
        """Render one plain line."""
        self.emit(Text(" ".join(str(part) for part in parts)))

    def error(self, message: str) -> None:
        """Render an error message."""
        self.emit(Text.assemble(("Error: ", "bold red"), message))

    def table(self, columns: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
        """Render rows as a table with the given column headers."""
        table = Table(*columns, box=box.SIMPLE_HEAD, highlight=False)
        for row in rows:
            table.add_row(*row)
        self.emit(table)

    @abstractmethod
    def emit(self, renderable: RenderableType) -> None:
        """Write one renderable as an uninterrupted sequence."""


class PlainSink(OutputSink):
    """Passthrough sink used while no console is attached."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._print_lock = threading.Lock()

    def emit(self, renderable: RenderableType) -> None:
        with self._print_lock:
            self.console.print(renderable)


class InputLine(Protocol):
    """The prompt and partially typed input currently on screen."""

    def clear(self) -> None: ...

    def redraw(self) -> None: ...


class PromptLine:
    """Input line drawn by a running prompt_toolkit session."""

    def __init__(self, session: PromptSession[str]) -> None:
        self._session = session

    def clear(self) -> None:
        app = self._session.app
        if app.is_running:
            app.renderer.erase()

    def redraw(self) -> None:
        app = self._session.app
        if app.is_running:
            # The buffer keeps the typed text, so a full repaint restores it.
            app.renderer.reset()
            app.invalidate()


class ConsoleSink(OutputSink):
    """Sink that keeps the operator's partial input intact around each write."""

    def __init__(self, console: Console, line: InputLine) -> None:
        self.console = console
        self._line = line
        self._print_lock = threading.Lock()

    def emit(self, renderable: RenderableType) -> None:
        with self._print_lock:
            self._line.clear()
            self.console.print(renderable)
            self._line.redraw()


class SinkSwitch(OutputSink):
    """Single sink handed to every component, delegating to the active target."""

    def __init__(self, default: OutputSink) -> None:
        self._default = default
        self._target = default

    @property
    def target(self) -> OutputSink:
        return self._target

    def attach(self, sink: OutputSink) -> None:
        self._target = sink

    def detach(self, sink: OutputSink) -> None:
        if self._target is sink:
            self._target = self._default

    def log(self, *parts: object) -> None:
        self._target.log(*parts)

    def error(self, message: str) -> None:
        self._target.error(message)

    def table(self, columns: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
        self._target.table(columns, rows)

    def emit(self, renderable: RenderableType) -> None:
        self._target.emit(renderable)


def create_output() -> SinkSwitch:
    """Create the output switch with a passthrough default."""
    return SinkSwitch(PlainSink())
