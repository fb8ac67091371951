"""CLI entry-point for the file client."""
from __future__ import annotations

from fsclient.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
