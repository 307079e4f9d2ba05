"""
Entry point for `python -m vaultpad`.

Opens the default vault in the terminal notepad when run without
arguments; otherwise dispatches to the CLI subcommands.
"""

from __future__ import annotations


def main():
    from .cli import run_cli
    run_cli()


if __name__ == "__main__":
    main()
