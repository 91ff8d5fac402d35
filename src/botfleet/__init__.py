"""Run many chat bot sessions and drive one of them from an interactive console."""

__version__ = "0.1.0"
