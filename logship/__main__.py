"""Module entrypoint for running logship as ``python -m logship``."""

from __future__ import annotations

from logship.cli import main


if __name__ == "__main__":
    main()
