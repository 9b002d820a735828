"""Module entrypoint for running MarkLoud as ``python -m markloud``."""

from __future__ import annotations

from markloud.cli import main


if __name__ == "__main__":
    main()
