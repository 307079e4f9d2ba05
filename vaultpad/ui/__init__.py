"""Terminal notepad built on Textual."""
