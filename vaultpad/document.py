"""
Document I/O: where envelopes are read from and written to.

The session only sees ``load_envelope()`` and ``persist()``; how the
envelope is embedded (HTML vault, bare JSON, memory) is decided here.
File writes go through a temp file and ``os.replace`` so the previous
artifact is either fully replaced or left untouched.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from .core.errors import FormatError, PersistenceFailure
from .core.formats import Envelope
from .template import render_vault

logger = logging.getLogger("vaultpad.document")

_DATA_TAG_RE = re.compile(
    r'(<script\s+id="vault-data"\s+type="text/encrypted-json"\s*>)(.*?)(</script>)',
    re.DOTALL | re.IGNORECASE,
)


class DocumentAdapter(ABC):
    """Source and sink of a single vault's envelope."""

    @abstractmethod
    def load_envelope(self) -> Envelope | None:
        """Return the stored envelope, or None for a new document.

        Raises FormatError if an envelope is present but malformed.
        """

    @abstractmethod
    def persist(self, envelope: Envelope) -> None:
        """Durably replace the stored envelope. Raises PersistenceFailure."""

    @property
    def name(self) -> str:
        return type(self).__name__


class MemoryDocument(DocumentAdapter):
    """Keeps the serialized artifact in memory."""

    def __init__(self, artifact: str | None = None):
        self.artifact = artifact
        self.writes = 0

    def load_envelope(self) -> Envelope | None:
        if not self.artifact:
            return None
        return Envelope.from_json(self.artifact)

    def persist(self, envelope: Envelope) -> None:
        self.artifact = envelope.to_json()
        self.writes += 1


def atomic_write_text(path: Path, text: str, mode: int = 0o600) -> None:
    """Write *text* to *path* atomically. Raises PersistenceFailure."""
    path = Path(path)
    directory = path.parent
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise PersistenceFailure(f"Cannot write {path}: {exc.strerror or exc}") from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_name)


class FileDocument(DocumentAdapter):
    """Shared behaviour of file-backed documents."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    @property
    def name(self) -> str:
        return str(self.path)

    def _read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            raise FormatError(f"{self.path} is not a UTF-8 text file") from exc


class JsonDocument(FileDocument):
    """A bare envelope JSON file."""

    def load_envelope(self) -> Envelope | None:
        text = self._read()
        if text is None or not text.strip():
            return None
        return Envelope.from_json(text)

    def persist(self, envelope: Envelope) -> None:
        atomic_write_text(self.path, envelope.to_json() + "\n")
        logger.debug("Wrote envelope to %s", self.path)


class HtmlDocument(FileDocument):
    """
    A self-contained HTML vault.

    The envelope sits inside the ``vault-data`` script tag; an empty tag or a
    missing file means a new document. Persisting keeps the rest of an
    existing file intact and only swaps the tag's contents.
    """

    def __init__(self, path: str | os.PathLike, title: str = "Vault"):
        super().__init__(path)
        self.title = title

    def load_envelope(self) -> Envelope | None:
        text = self._read()
        if text is None:
            return None
        match = _DATA_TAG_RE.search(text)
        if match is None:
            raise FormatError(f"{self.path} has no vault-data script tag")
        data = match.group(2).strip()
        if not data:
            return None
        return Envelope.from_json(data)

    def render(self, envelope: Envelope) -> str:
        """The full document text with *envelope* embedded."""
        envelope_json = envelope.to_json()
        host = self._read()
        if host is not None and _DATA_TAG_RE.search(host):
            return _DATA_TAG_RE.sub(
                lambda m: m.group(1) + envelope_json + m.group(3), host, count=1,
            )
        return render_vault(self.title, envelope_json)

    def persist(self, envelope: Envelope) -> None:
        try:
            text = self.render(envelope)
        except (OSError, FormatError) as exc:
            raise PersistenceFailure(f"Cannot read {self.path}: {exc}") from exc
        atomic_write_text(self.path, text)
        logger.debug("Wrote vault document %s", self.path)


def open_document(path: str | os.PathLike, title: str | None = None) -> FileDocument:
    """Pick the adapter for *path* by extension (``.json`` or HTML)."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        return JsonDocument(path)
    return HtmlDocument(path, title=title or path.stem or "Vault")
