"""Interactive command console bound to one session."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import FormattedText
from rich.console import Console

from botfleet.cli.render import ConsoleSink, PromptLine, SinkSwitch
from botfleet.core.dispatcher import CommandDispatcher
from botfleet.core.tokenizer import tokenize
from botfleet.sessions.base import Session


class ConsoleState(StrEnum):
    IDLE = "idle"
    PROCESSING = "processing"
    CLOSED = "closed"


class InteractiveConsole:
    """Line-oriented shell for inspecting and messaging through a session.

    While running, every write going through the shared output switch is
    routed to a sink that clears and redraws the prompt around it.
    """

    def __init__(
        self,
        session: Session,
        prompt: str,
        *,
        output: SinkSwitch,
        on_close: Callable[[], None] | None = None,
        prompt_session: PromptSession[str] | None = None,
        console: Console | None = None,
    ) -> None:
        self.session = session
        self.state = ConsoleState.IDLE
        self._prompt = FormattedText([("bold ansigreen", f"{prompt}> ")])
        self._output = output
        self._on_close = on_close
        self._prompt_session: PromptSession[str] = prompt_session or PromptSession()
        self._sink = ConsoleSink(console or Console(), PromptLine(self._prompt_session))
        self._dispatcher = CommandDispatcher(session, output)

    @property
    def sink(self) -> ConsoleSink:
        return self._sink

    async def run(self) -> None:
        self._output.attach(self._sink)
        try:
            while self.state is not ConsoleState.CLOSED:
                try:
                    line = await self._prompt_session.prompt_async(self._prompt)
                except (KeyboardInterrupt, EOFError):
                    break
                await self.process_line(line)
        finally:
            self.close()

    async def process_line(self, line: str) -> None:
        """Run one submitted line to completion."""
        tokens = tokenize(line)
        if not tokens:
            return
        self.state = ConsoleState.PROCESSING
        try:
            await self._dispatcher.execute(tokens)
        except Exception as exc:
            logger.opt(exception=exc).debug("console.command.error session_id={}", self.session.id)
            self._output.error(str(exc) or type(exc).__name__)
        finally:
            if self.state is ConsoleState.PROCESSING:
                self.state = ConsoleState.IDLE

    def close(self) -> None:
        if self.state is ConsoleState.CLOSED:
            return
        self.state = ConsoleState.CLOSED
        self._output.detach(self._sink)
        self._output.log("Exiting program.")
        if self._on_close is not None:
            self._on_close()
