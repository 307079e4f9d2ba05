"""
Vault session: the lifecycle state machine around one loaded document.

States::

    PRISTINE  new document, never persisted, unlocked by definition
    LOCKED    an envelope exists, no plaintext or key in memory
    UNLOCKED  plaintext and key resident; clean or dirty

Plaintext only ever lives in ``_payload``; the only thing handed to the
document is an ``Envelope``. A save encrypts a snapshot of the payload and
that snapshot's content becomes the new "last persisted" baseline, so the
dirty flag always compares against exactly what is on disk.

The ``*_async`` variants run key derivation and encryption in a worker
thread. Calls of one class (unlock, or save/rekey) are serialised by a lock,
and every result is checked against the session generation, which ``lock()``
and ``close()`` bump. A result computed for an older generation is thrown
away and never applied.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

from .codec import EnvelopeCodec
from .errors import AuthFailure, OperationSuperseded, PersistenceFailure, StateError
from .formats import Envelope, VaultPayload
from .memory import Credential
from .validation import validate_new_password

if TYPE_CHECKING:
    from ..document import DocumentAdapter

logger = logging.getLogger("vaultpad.session")


class LifecycleState(Enum):
    PRISTINE = "pristine"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class VaultSession:
    """
    Decrypted working state of one vault document.

    Parameters:
        document: Document I/O adapter; read once here, written on save/rekey.
        codec: envelope codec (default: production PBKDF2 + AES-256-GCM).
    """

    def __init__(self, document: DocumentAdapter, codec: EnvelopeCodec | None = None):
        self._document = document
        self._codec = codec or EnvelopeCodec()
        self._envelope: Envelope | None = document.load_envelope()
        self._payload: VaultPayload | None = None
        self._credential: Credential | None = None
        self._baseline = ""
        self._generation = 0
        self._closed = False
        self._unlock_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

        if self._envelope is None:
            self._start_pristine()
        logger.info("Session opened (%s)", self.state.value)

    # ------- Observable state -------

    @property
    def state(self) -> LifecycleState:
        if self._envelope is None:
            return LifecycleState.PRISTINE
        if self._payload is None:
            return LifecycleState.LOCKED
        return LifecycleState.UNLOCKED

    @property
    def is_unlocked(self) -> bool:
        """True when plaintext may be read or edited (PRISTINE or UNLOCKED)."""
        return self._payload is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dirty(self) -> bool:
        """Working content differs from the last persisted content."""
        return self._payload is not None and self._payload.content != self._baseline

    @property
    def content(self) -> str:
        return self._require_unlocked("read content").content

    @property
    def vault_id(self) -> str:
        return self._require_unlocked("read vault id").vault_id

    @property
    def requires_new_password(self) -> bool:
        """The next save must capture and confirm a new password."""
        return self._credential is None

    @property
    def envelope(self) -> Envelope | None:
        """The envelope most recently loaded or persisted."""
        return self._envelope

    @property
    def codec(self) -> EnvelopeCodec:
        return self._codec

    # ------- Transitions -------

    def submit_password(self, password: str) -> None:
        """LOCKED -> UNLOCKED. Raises AuthFailure and stays LOCKED on a bad password."""
        envelope = self._require_locked()
        try:
            payload, credential = self._codec.unseal(envelope, password)
        except AuthFailure:
            logger.warning("Unlock failed: invalid password")
            raise
        self._adopt(payload, credential)

    def edit(self, text: str) -> None:
        """Replace the working content."""
        payload = self._require_unlocked("edit")
        self._payload = payload.with_content(text)

    def save(self, password: str | None = None, confirm: str | None = None) -> Envelope:
        """
        Encrypt the current content and persist it.

        *password* and *confirm* are only consulted for the first save of a
        pristine vault; afterwards the resident credential is reused.

        Raises:
            ValidationError: first save with an empty or mismatched password
            PersistenceFailure: the document could not be written (stays dirty)
        """
        snapshot, credential, fresh = self._begin_save(password, confirm)
        envelope = self._seal(snapshot, credential, fresh)
        return self._commit(envelope, snapshot, credential, fresh, self._generation, "save")

    def rekey(self, new_password: str | None, confirm: str | None) -> Envelope:
        """Re-encrypt the unlocked payload under *new_password* and persist it."""
        snapshot, candidate = self._begin_rekey(new_password, confirm)
        envelope = self._seal(snapshot, candidate, True)
        return self._commit(envelope, snapshot, candidate, True, self._generation, "rekey")

    def lock(self) -> None:
        """
        Discard plaintext and key.

        A persisted vault becomes LOCKED. A never-persisted vault is replaced
        by a fresh, empty pristine vault, the same as reloading the document.
        """
        self._require_open()
        self._generation += 1
        self._discard()
        if self._envelope is None:
            self._start_pristine()
            logger.info("Pristine vault discarded")
        else:
            logger.info("Vault locked")

    def close(self) -> None:
        """Tear the session down; every later operation raises StateError."""
        if self._closed:
            return
        self._generation += 1
        self._discard()
        self._closed = True
        logger.info("Session closed")

    # ------- Async variants -------

    async def submit_password_async(self, password: str) -> None:
        """Unlock without blocking the event loop.

        A second call queues behind a pending one; once the vault is
        unlocked it fails with StateError, so one LOCKED session never
        unlocks twice.
        """
        generation = self._generation
        async with self._unlock_lock:
            self._check_generation(generation, "unlock")
            envelope = self._require_locked()
            try:
                payload, credential = await asyncio.to_thread(self._codec.unseal, envelope, password)
            except AuthFailure:
                self._check_generation(generation, "unlock")
                logger.warning("Unlock failed: invalid password")
                raise
            if generation != self._generation or self._closed:
                credential.wipe()
                raise OperationSuperseded("Unlock result discarded: session was locked")
            self._adopt(payload, credential)

    async def save_async(self, password: str | None = None, confirm: str | None = None) -> Envelope:
        generation = self._generation
        async with self._write_lock:
            self._check_generation(generation, "save")
            snapshot, credential, fresh = self._begin_save(password, confirm)
            envelope = await self._seal_in_thread(snapshot, credential, fresh, generation)
            return self._commit(envelope, snapshot, credential, fresh, generation, "save")

    async def rekey_async(self, new_password: str | None, confirm: str | None) -> Envelope:
        generation = self._generation
        async with self._write_lock:
            self._check_generation(generation, "rekey")
            snapshot, candidate = self._begin_rekey(new_password, confirm)
            envelope = await self._seal_in_thread(snapshot, candidate, True, generation)
            return self._commit(envelope, snapshot, candidate, True, generation, "rekey")

    # ------- Internals -------

    def _start_pristine(self) -> None:
        self._payload = VaultPayload.create()
        self._baseline = ""

    def _adopt(self, payload: VaultPayload, credential: Credential) -> None:
        self._payload = payload
        self._credential = credential
        self._baseline = payload.content
        logger.info("Vault unlocked")

    def _discard(self) -> None:
        if self._credential is not None:
            self._credential.wipe()
        self._credential = None
        self._payload = None
        self._baseline = ""

    def _begin_save(
        self, password: str | None, confirm: str | None,
    ) -> tuple[VaultPayload, Credential, bool]:
        snapshot = self._require_unlocked("save")
        if self._credential is None:
            validate_new_password(password, confirm)
            return snapshot, Credential(password), True
        return snapshot, self._credential, False

    def _begin_rekey(
        self, new_password: str | None, confirm: str | None,
    ) -> tuple[VaultPayload, Credential]:
        self._require_open()
        if self.state is not LifecycleState.UNLOCKED:
            raise StateError(f"Cannot change the password of a {self.state.value} vault")
        validate_new_password(new_password, confirm)
        return self._payload, Credential(new_password)

    def _seal(self, snapshot: VaultPayload, credential: Credential, fresh: bool) -> Envelope:
        try:
            return self._codec.seal(snapshot, credential)
        except Exception:
            if fresh:
                credential.wipe()
            raise

    async def _seal_in_thread(
        self, snapshot: VaultPayload, credential: Credential, fresh: bool, generation: int,
    ) -> Envelope:
        try:
            return await asyncio.to_thread(self._codec.seal, snapshot, credential)
        except Exception:
            if fresh:
                credential.wipe()
            self._check_generation(generation, "encryption")
            raise

    def _commit(
        self,
        envelope: Envelope,
        snapshot: VaultPayload,
        credential: Credential,
        fresh: bool,
        generation: int,
        action: str,
    ) -> Envelope:
        """Persist *envelope* and make it the new baseline. Runs without suspending."""
        if generation != self._generation or self._closed:
            if fresh:
                credential.wipe()
            raise OperationSuperseded(f"{action.capitalize()} result discarded: session was locked")

        try:
            self._document.persist(envelope)
        except (PersistenceFailure, OSError) as exc:
            if fresh:
                credential.wipe()
            logger.warning("%s failed: document not written (%s)", action.capitalize(), exc)
            if isinstance(exc, PersistenceFailure):
                raise
            raise PersistenceFailure(str(exc)) from exc

        if fresh:
            if self._credential is not None:
                self._credential.wipe()
            self._credential = credential
        self._envelope = envelope
        self._baseline = snapshot.content
        logger.info("Envelope persisted (%s)", action)
        return envelope

    def _check_generation(self, generation: int, action: str) -> None:
        if generation != self._generation or self._closed:
            raise OperationSuperseded(f"{action.capitalize()} discarded: session was locked")

    def _require_open(self) -> None:
        if self._closed:
            raise StateError("Session is closed")

    def _require_locked(self) -> Envelope:
        self._require_open()
        if self.state is not LifecycleState.LOCKED:
            raise StateError(f"Vault is already {self.state.value}")
        return self._envelope

    def _require_unlocked(self, action: str) -> VaultPayload:
        self._require_open()
        if self._payload is None:
            raise StateError(f"Cannot {action}: vault is locked")
        return self._payload

    def __repr__(self) -> str:
        return f"VaultSession(state={self.state.value}, dirty={self.dirty})"
