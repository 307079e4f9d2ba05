"""Password capture dialog used for the first save and for rekeying."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static

from ..core.errors import ValidationError
from ..core.validation import check_password_strength, validate_new_password


class StrengthBar(Static):
    """Advisory password strength indicator. Never blocks a save."""

    score: reactive[int] = reactive(0)

    def render(self) -> str:
        filled = self.score // 10
        empty = 10 - filled
        if self.score >= 80:
            color, label = "#00FF41", "Excellent"
        elif self.score >= 60:
            color, label = "#00CC33", "Strong"
        elif self.score >= 40:
            color, label = "#FFD700", "Fair"
        elif self.score >= 20:
            color, label = "#FF8800", "Weak"
        else:
            color, label = "#FF3333", "Very weak"
        return f"[{color}]{'█' * filled}{'░' * empty}[/] {label}"


class PasswordModal(ModalScreen):
    """New password + confirmation.

    Dismisses with ``(password, confirm)`` once validation passes, or with
    None on cancel. Validation messages stay inside the dialog.
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, title: str, **kw) -> None:
        super().__init__(**kw)
        self._title = title

    def compose(self) -> ComposeResult:
        with Vertical(id="password-dialog"):
            yield Static(self._title, classes="dialog-title", markup=False)
            yield Static(
                "[dim]There is no recovery: forget this password and the "
                "vault is lost.[/dim]",
            )
            yield Input(placeholder="New password", password=True, id="password-input")
            yield Input(placeholder="Confirm password", password=True, id="password-confirm")
            yield StrengthBar(id="strength-bar")
            yield Static("", id="password-error")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Confirm", id="password-ok", variant="primary")
                yield Button("Cancel", id="password-cancel")

    def on_mount(self) -> None:
        self.query_one("#password-input", Input).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "password-input":
            self.query_one(StrengthBar).score = check_password_strength(event.value).score
        event.stop()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "password-ok":
            self.submit()
        elif event.button.id == "password-cancel":
            self.dismiss(None)

    def submit(self) -> None:
        password = self.query_one("#password-input", Input).value
        confirm = self.query_one("#password-confirm", Input).value
        try:
            validate_new_password(password, confirm)
        except ValidationError as exc:
            self.query_one("#password-error", Static).update(exc.message)
            target = "#password-input" if exc.field == "password" else "#password-confirm"
            self.query_one(target, Input).focus()
            return
        self.dismiss((password, confirm))

    def action_cancel(self) -> None:
        self.dismiss(None)
