"""botfleet command line bootstrap."""

from __future__ import annotations

from botfleet.cli.app import app

if __name__ == "__main__":
    app()
