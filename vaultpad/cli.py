"""
Command-line interface.

Passwords are always read interactively (getpass, or one line of stdin when
no terminal is available), never from argv.
"""

from __future__ import annotations

import argparse
import getpass
import sys
from contextlib import contextmanager

from . import __version__
from .core.config import (
    DEFAULTS,
    LOG_LEVELS,
    apply_config_defaults,
    config_file,
    load_config,
    parse_setting,
    save_config,
)
from .core.errors import (
    AuthFailure,
    FormatError,
    PersistenceFailure,
    StateError,
    ValidationError,
)
from .core.session import LifecycleState, VaultSession
from .document import open_document
from .log import configure_logging


class CLIError(Exception):
    """Aborts the current command with a message and exit status 1."""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultpad",
        description="vaultpad: a password-protected single-file notepad",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log progress to stderr (same as --log-level INFO)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Logging threshold (default: from config, else WARNING)",
    )
    parser.set_defaults(command=None, file=None, default_path=None, title=None, confirm_quit=None)

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    edit = sub.add_parser("edit", help="Open a vault in the terminal notepad")
    edit.add_argument("file", nargs="?", help="Vault file (default: from config, else vault.html)")
    edit.add_argument("--title", help="Title for a newly created vault file")

    show = sub.add_parser("show", help="Unlock a vault and print its content")
    show.add_argument("file", help="Vault file (.html or .json)")

    write = sub.add_parser("write", help="Replace a vault's content (creates the vault if needed)")
    write.add_argument("file", help="Vault file (.html or .json)")
    write.add_argument(
        "-d", "--data",
        help="New content. Use '-' to read from stdin. Omit to enter interactively.",
    )
    write.add_argument("--title", help="Title for a newly created vault file")

    passwd = sub.add_parser("passwd", help="Change a vault's master password")
    passwd.add_argument("file", help="Vault file (.html or .json)")

    info = sub.add_parser("info", help="Show non-secret facts about a vault file")
    info.add_argument("file", help="Vault file (.html or .json)")

    config = sub.add_parser("config", help="Show or change saved preferences")
    config.add_argument(
        "--set",
        dest="settings",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help=f"Save a preference (keys: {', '.join(DEFAULTS)}). May be repeated.",
    )

    return parser


def _read_password(prompt: str = "Master password: ") -> str:
    """Read a password from the terminal, or one stdin line without a TTY."""
    try:
        return getpass.getpass(prompt)
    except OSError:
        return sys.stdin.readline().rstrip("\n")


def _read_new_password() -> tuple[str, str]:
    password = _read_password("New password: ")
    confirm = _read_password("Confirm password: ")
    return password, confirm


def _print_status(msg: str, error: bool = False) -> None:
    stream = sys.stderr if error else sys.stdout
    print(msg, file=stream)


@contextmanager
def _session_for(args: argparse.Namespace):
    document = open_document(args.file, title=args.title)
    try:
        session = VaultSession(document)
    except FormatError as exc:
        raise CLIError(f"{args.file} is not a valid vault: {exc}") from exc
    try:
        yield session, document
    finally:
        session.close()


def _unlock(session: VaultSession) -> None:
    if session.state is LifecycleState.LOCKED:
        session.submit_password(_read_password())


def _read_content(args: argparse.Namespace) -> str:
    if args.data == "-":
        return sys.stdin.read()
    if args.data is not None:
        return args.data
    print("Enter the new content (Ctrl+D or Ctrl+Z when done):")
    lines = []
    try:
        while True:
            lines.append(input())
    except EOFError:
        pass
    return "\n".join(lines)


# ------- Commands -------

def _cmd_show(args: argparse.Namespace) -> None:
    with _session_for(args) as (session, _):
        if session.state is LifecycleState.PRISTINE:
            raise CLIError(f"{args.file} does not contain a vault yet")
        _unlock(session)
        sys.stdout.write(session.content)
        if session.content and not session.content.endswith("\n"):
            sys.stdout.write("\n")


def _cmd_write(args: argparse.Namespace) -> None:
    with _session_for(args) as (session, document):
        _unlock(session)
        session.edit(_read_content(args))
        if not session.dirty and session.state is LifecycleState.UNLOCKED:
            _print_status(f"{document.name}: content unchanged, nothing to save")
            return
        if session.requires_new_password:
            password, confirm = _read_new_password()
            session.save(password, confirm)
        else:
            session.save()
        _print_status(f"Saved {document.name}")


def _cmd_passwd(args: argparse.Namespace) -> None:
    with _session_for(args) as (session, document):
        if session.state is LifecycleState.PRISTINE:
            raise CLIError(
                f"{args.file} does not contain a vault yet; create it with 'vaultpad write'"
            )
        _unlock(session)
        new_password, confirm = _read_new_password()
        session.rekey(new_password, confirm)
        _print_status(f"Password changed for {document.name}")


def _cmd_info(args: argparse.Namespace) -> None:
    with _session_for(args) as (session, document):
        kind = type(document).__name__.replace("Document", "").upper()
        print(f"File:    {document.name}")
        print(f"Format:  {kind}")
        envelope = session.envelope
        if envelope is None:
            print("State:   empty (no vault saved yet)")
            return
        print("State:   locked")
        print(f"Cipher:  {session.codec.description}")
        print(f"Salt:    {len(envelope.salt)} bytes")
        print(f"IV:      {len(envelope.iv)} bytes")
        print(f"Data:    {len(envelope.data)} bytes (ciphertext + tag)")


def _cmd_config(args: argparse.Namespace) -> None:
    saved = load_config()
    if args.settings:
        for item in args.settings:
            key, sep, raw = item.partition("=")
            if not sep:
                raise CLIError(f"Expected KEY=VALUE, got {item!r}")
            try:
                saved[key.strip()] = parse_setting(key.strip(), raw)
            except ValueError as exc:
                raise CLIError(str(exc)) from exc
        try:
            path = save_config(saved)
        except OSError as exc:
            raise CLIError(f"Cannot write {config_file()}: {exc}") from exc
        _print_status(f"Saved {path}")
        return

    print(f"# {config_file()}")
    for key, default in DEFAULTS.items():
        value = saved.get(key, default)
        origin = "" if key in saved else "  (default)"
        print(f"{key} = {value!r}{origin}")


def _cmd_edit(args: argparse.Namespace) -> None:
    from .ui.app import run_tui

    path = args.file or args.default_path
    document = open_document(path, title=args.title)
    try:
        run_tui(document, confirm_quit=bool(args.confirm_quit))
    except FormatError as exc:
        raise CLIError(f"{path} is not a valid vault: {exc}") from exc


_COMMANDS = {
    "edit": _cmd_edit,
    "show": _cmd_show,
    "write": _cmd_write,
    "passwd": _cmd_passwd,
    "info": _cmd_info,
    "config": _cmd_config,
}


def run_cli(argv: list[str] | None = None) -> None:
    """Run the CLI interface."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    apply_config_defaults(args, load_config())
    configure_logging("INFO" if args.verbose else args.log_level)

    command = _COMMANDS[args.command or "edit"]
    try:
        command(args)
    except AuthFailure as exc:
        _print_status(f"Error: {exc}", error=True)
        sys.exit(1)
    except ValidationError as exc:
        _print_status(f"Error: {exc.message}", error=True)
        sys.exit(1)
    except (CLIError, PersistenceFailure, StateError, FormatError) as exc:
        _print_status(f"Error: {exc}", error=True)
        sys.exit(1)
