"""Stylesheet for the vaultpad TUI: dark terminal palette, green accents."""

from __future__ import annotations

VAULTPAD_CSS = """

Screen {
    background: #0A0A0A;
    layout: vertical;
}

/* ── Header ─────────────────────────────────────────────────────── */

#header-bar {
    dock: top;
    height: 3;
    background: #0F0F0F;
    padding: 1 2;
    border-bottom: heavy #0D3B0D;
}

#header-title {
    width: 1fr;
    color: #00FF41;
    text-style: bold;
}

#header-subtitle {
    width: auto;
    color: #007018;
    text-style: italic;
}

/* ── Login view ─────────────────────────────────────────────────── */

#login-view {
    align: center middle;
    height: 1fr;
}

#login-view > * {
    width: 60;
    margin: 0 0 1 0;
}

.view-title {
    color: #00FF41;
    text-style: bold;
}

#error-message {
    color: #FF3333;
    height: 1;
}

/* ── Main view ──────────────────────────────────────────────────── */

#main-view {
    height: 1fr;
    padding: 0 1;
}

#toolbar {
    height: 3;
    margin: 1 0 0 0;
}

#toolbar Button {
    margin: 0 1 0 0;
}

#unsaved-indicator {
    width: auto;
    padding: 1 2;
    color: #FFD700;
    text-style: bold;
}

#notepad {
    height: 1fr;
    border: heavy #0D3B0D;
}

#notepad:focus {
    border: heavy #00FF41;
}

/* ── Password modal ─────────────────────────────────────────────── */

PasswordModal {
    align: center middle;
    background: #0A0A0A 70%;
}

#password-dialog {
    width: 64;
    height: auto;
    padding: 1 2;
    background: #0F0F0F;
    border: heavy #00FF41;
}

#password-dialog > * {
    margin: 0 0 1 0;
}

.dialog-title {
    color: #00FF41;
    text-style: bold;
}

#password-error {
    color: #FF3333;
    height: 1;
}

.dialog-buttons {
    height: 3;
    align-horizontal: right;
}

.dialog-buttons Button {
    margin: 0 0 0 1;
}
"""
