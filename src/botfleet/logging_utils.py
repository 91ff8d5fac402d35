"""Runtime logging helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import loguru
from loguru import logger

if TYPE_CHECKING:
    from botfleet.cli.render import OutputSink

_LOG_FORMAT = "{time:HH:mm:ss} | {level:<7} | {name}:{function}:{line} | {message}"


def configure_logging(sink: OutputSink, *, level: str = "INFO") -> None:
    """Route loguru records through the given output sink."""

    def forward(message: loguru.Message) -> None:
        sink.log(str(message).rstrip("\n"))

    logger.remove()
    logger.add(
        forward,
        level=level.upper(),
        format=_LOG_FORMAT,
        colorize=False,
        backtrace=False,
        diagnose=False,
    )
