# File: diagramgen/__main__.py
"""
diagramgen — Module entry point.

Allows running the generator directly via::

    python -m diagramgen --diagram diagram.json --output ./out

This module simply delegates to the CLI entry point defined in ``diagramgen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from diagramgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
