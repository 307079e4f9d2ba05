"""
Password validation.

``validate_new_password`` is the gate for a first save and for rekeying.
It only refuses empty or mismatched input. ``check_password_strength`` is
advisory and never blocks a save.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import ValidationError

EMPTY_PASSWORD = "Password cannot be empty."
PASSWORD_MISMATCH = "Passwords do not match."


def validate_new_password(password: str | None, confirm: str | None) -> None:
    """Raise ValidationError unless *password* is non-empty and equals *confirm*."""
    if not password:
        raise ValidationError(EMPTY_PASSWORD, field="password")
    if password != confirm:
        raise ValidationError(PASSWORD_MISMATCH, field="confirm")


@dataclass
class PasswordStrength:
    """Result of password strength analysis."""
    score: int                      # 0-100
    label: str                      # "Very weak" .. "Excellent"
    feedback: list[str] = field(default_factory=list)


_LABELS = ((80, "Excellent"), (60, "Strong"), (40, "Fair"), (20, "Weak"))


def check_password_strength(password: str) -> PasswordStrength:
    """
    Rough 0-100 estimate: length up to 50 points, 10 per character class,
    minus 10 each for runs (``aaa``) and ascending sequences (``123``).
    """
    if not password:
        return PasswordStrength(0, "Very weak", [EMPTY_PASSWORD])

    feedback: list[str] = []
    length = len(password)
    score = min(length, 25) * 2
    if length < 12:
        feedback.append(f"Use at least 12 characters (currently {length})")

    classes = (
        (r"[a-z]", "Add lowercase letters"),
        (r"[A-Z]", "Add uppercase letters"),
        (r"[0-9]", "Add digits"),
        (r"[^A-Za-z0-9]", "Add symbols or spaces"),
    )
    for pattern, hint in classes:
        if re.search(pattern, password):
            score += 10
        else:
            feedback.append(hint)

    if re.search(r"(.)\1{2,}", password):
        score -= 10
        feedback.append("Avoid repeated characters")
    if re.search(r"012|123|234|345|456|567|678|789|abc|bcd|cde|def", password.lower()):
        score -= 10
        feedback.append("Avoid sequences like 123 or abc")

    score = max(0, min(score, 100))
    label = next((name for floor, name in _LABELS if score >= floor), "Very weak")
    return PasswordStrength(score, label, feedback)
