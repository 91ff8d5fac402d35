"""Messaging sessions and their orchestration."""

from botfleet.sessions.base import Session

__all__ = ["Session"]
