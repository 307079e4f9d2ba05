"""vaultpad notepad: login view while locked, editor while unlocked.

Keyboard:
  Ctrl+S   Save (asks for a new password on the first save)
  F2       Change master password
  Ctrl+L   Lock
  Ctrl+Q   Quit (press twice with unsaved changes)
"""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Footer, Input, Static, TextArea

from ..core.codec import EnvelopeCodec
from ..core.errors import (
    AuthFailure,
    OperationSuperseded,
    PersistenceFailure,
    StateError,
    ValidationError,
)
from ..core.session import LifecycleState, VaultSession
from ..document import DocumentAdapter
from .modals import PasswordModal
from .theme import VAULTPAD_CSS


class VaultpadApp(App):
    """Single-document notepad over a VaultSession."""

    TITLE = "vaultpad"
    CSS = VAULTPAD_CSS

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("f2", "change_password", "Password"),
        Binding("ctrl+l", "lock", "Lock"),
        Binding("ctrl+q", "request_quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        document: DocumentAdapter,
        codec: EnvelopeCodec | None = None,
        confirm_quit: bool = True,
        **kw,
    ) -> None:
        super().__init__(**kw)
        self._document = document
        self._session = VaultSession(document, codec=codec)
        self._confirm_quit = confirm_quit
        self._quit_armed = False

    @property
    def session(self) -> VaultSession:
        return self._session

    # ── Compose ────────────────────────────────────────────────────

    def compose(self) -> ComposeResult:
        with Horizontal(id="header-bar"):
            yield Static("[bold #00FF41]⬡ vaultpad[/]", id="header-title")
            yield Static(self._document.name, id="header-subtitle", markup=False)
        with Vertical(id="login-view"):
            yield Static("This vault is locked.", classes="view-title")
            yield Input(placeholder="Master password", password=True, id="master-password")
            yield Button("Unlock", id="unlock-btn", variant="primary")
            yield Static("", id="error-message")
        with Vertical(id="main-view"):
            with Horizontal(id="toolbar"):
                yield Button("Save", id="save-btn", variant="primary")
                yield Button("Password", id="password-btn")
                yield Button("Lock", id="lock-btn")
                yield Static("● Unsaved changes", id="unsaved-indicator")
            yield TextArea(id="notepad")
        yield Footer()

    def on_mount(self) -> None:
        self._sync_view()

    # ── View sync ──────────────────────────────────────────────────

    def _sync_view(self) -> None:
        unlocked = self._session.is_unlocked
        self.query_one("#login-view").display = not unlocked
        self.query_one("#main-view").display = unlocked
        if unlocked:
            self.query_one("#notepad", TextArea).focus()
        else:
            self.query_one("#master-password", Input).focus()
        self._refresh_indicator()

    def _refresh_indicator(self) -> None:
        self.query_one("#unsaved-indicator").display = self._session.dirty

    def _load_notepad(self, text: str) -> None:
        self.query_one("#notepad", TextArea).load_text(text)

    # ── Events ─────────────────────────────────────────────────────

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self._session.is_unlocked:
            self._session.edit(event.text_area.text)
        self._quit_armed = False
        self._refresh_indicator()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "master-password":
            self.start_unlock()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        handlers = {
            "unlock-btn": self.start_unlock,
            "save-btn": self.action_save,
            "password-btn": self.action_change_password,
            "lock-btn": self.action_lock,
        }
        handler = handlers.get(event.button.id)
        if handler is not None:
            handler()

    # ── Unlock ─────────────────────────────────────────────────────

    def start_unlock(self) -> None:
        field = self.query_one("#master-password", Input)
        password = field.value
        field.value = ""
        self.query_one("#error-message", Static).update("")
        self.run_worker(self._unlock(password), group="unlock")

    async def _unlock(self, password: str) -> None:
        try:
            await self._session.submit_password_async(password)
        except AuthFailure as exc:
            self.query_one("#error-message", Static).update(str(exc))
            return
        except (OperationSuperseded, StateError):
            return
        self._load_notepad(self._session.content)
        self._sync_view()

    # ── Save / rekey ───────────────────────────────────────────────

    def action_save(self) -> None:
        if not self._session.is_unlocked:
            return
        if self._session.requires_new_password:
            self.push_screen(PasswordModal("Set a password for this vault"), self._on_first_password)
        else:
            self.run_worker(self._save(), group="write")

    def _on_first_password(self, result: tuple[str, str] | None) -> None:
        if result is not None:
            password, confirm = result
            self.run_worker(self._save(password, confirm), group="write")

    async def _save(self, password: str | None = None, confirm: str | None = None) -> None:
        try:
            await self._session.save_async(password, confirm)
        except ValidationError as exc:
            self.notify(exc.message, severity="error")
            return
        except PersistenceFailure as exc:
            self.notify(f"Save failed: {exc}", severity="error", timeout=8)
            return
        except (OperationSuperseded, StateError):
            return
        finally:
            self._refresh_indicator()
        self.notify("Saved")

    def action_change_password(self) -> None:
        state = self._session.state
        if state is LifecycleState.PRISTINE:
            self.action_save()
        elif state is LifecycleState.UNLOCKED:
            self.push_screen(PasswordModal("Change master password"), self._on_new_password)

    def _on_new_password(self, result: tuple[str, str] | None) -> None:
        if result is not None:
            new_password, confirm = result
            self.run_worker(self._rekey(new_password, confirm), group="write")

    async def _rekey(self, new_password: str, confirm: str) -> None:
        try:
            await self._session.rekey_async(new_password, confirm)
        except ValidationError as exc:
            self.notify(exc.message, severity="error")
            return
        except PersistenceFailure as exc:
            self.notify(f"Password change failed: {exc}", severity="error", timeout=8)
            return
        except (OperationSuperseded, StateError):
            return
        finally:
            self._refresh_indicator()
        self.notify("Password changed")

    # ── Lock / quit ────────────────────────────────────────────────

    def action_lock(self) -> None:
        if self._session.closed:
            return
        if self._session.dirty:
            self.notify("Unsaved changes discarded", severity="warning")
        self._session.lock()
        self._load_notepad("")
        self.query_one("#error-message", Static).update("")
        self._sync_view()

    def action_request_quit(self) -> None:
        if self._session.dirty and self._confirm_quit and not self._quit_armed:
            self._quit_armed = True
            self.notify(
                "Unsaved changes. Press Ctrl+Q again to quit without saving.",
                severity="warning",
            )
            return
        self._session.close()
        self.exit()


def run_tui(document: DocumentAdapter, codec: EnvelopeCodec | None = None,
            confirm_quit: bool = True) -> None:
    """Launch the notepad on *document*."""
    app = VaultpadApp(document, codec=codec, confirm_quit=confirm_quit)
    try:
        app.run()
    finally:
        app.session.close()
