"""
memquery/__main__.py

Package entry point:

    python -m memquery DATA.json PLAN.json [--page-size N]

This is also the target of the `memquery` console script in pyproject.toml.
"""

from __future__ import annotations

import sys


def main() -> int:
    """
    Entry point for `python -m memquery` and the installed `memquery` command.

    Returns:
        Exit code.
    """
    from .cli import main as cli_main

    return int(cli_main(sys.argv[1:]))


if __name__ == "__main__":
    raise SystemExit(main())
