"""Command line interface and interactive console."""
