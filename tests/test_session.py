"""Tests for the vault session lifecycle."""

import pytest

from vaultpad.core.errors import (
    INVALID_PASSWORD,
    AuthFailure,
    PersistenceFailure,
    StateError,
    ValidationError,
)
from vaultpad.core.formats import VaultPayload
from vaultpad.core.session import LifecycleState, VaultSession
from vaultpad.core.validation import EMPTY_PASSWORD, PASSWORD_MISMATCH
from vaultpad.document import MemoryDocument


class FlakyDocument(MemoryDocument):
    """MemoryDocument whose writes fail while ``fail`` is set."""

    def __init__(self, artifact=None, error=None):
        super().__init__(artifact)
        self.fail = False
        self.error = error or PersistenceFailure("disk full")

    def persist(self, envelope):
        if self.fail:
            raise self.error
        super().persist(envelope)


def _saved_vault(codec, content="hello", password="p@ss"):
    """A document holding one persisted vault, plus its vault id."""
    payload = VaultPayload.create(content)
    return MemoryDocument(codec.encrypt(payload, password).to_json()), payload.vault_id


class TestPristine:
    def test_new_document_is_pristine(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        assert session.state is LifecycleState.PRISTINE
        assert session.is_unlocked
        assert session.content == ""
        assert not session.dirty
        assert session.requires_new_password
        assert session.envelope is None

    def test_edit_makes_dirty(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        session.edit("draft")
        assert session.dirty
        assert session.state is LifecycleState.PRISTINE

    def test_edit_back_to_baseline_is_clean(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        session.edit("draft")
        session.edit("")
        assert not session.dirty

    def test_first_save_empty_password(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        session.edit("hello")
        with pytest.raises(ValidationError) as excinfo:
            session.save("", "")
        assert excinfo.value.message == EMPTY_PASSWORD
        assert memory_doc.writes == 0
        assert session.dirty
        assert session.state is LifecycleState.PRISTINE

    def test_first_save_without_password(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        with pytest.raises(ValidationError):
            session.save()

    def test_first_save_mismatch(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        session.edit("hello")
        with pytest.raises(ValidationError) as excinfo:
            session.save("A", "B")
        assert excinfo.value.message == PASSWORD_MISMATCH
        assert memory_doc.writes == 0

    def test_first_save(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        vault_id = session.vault_id
        session.edit("hello")
        envelope = session.save("p@ss", "p@ss")
        assert session.state is LifecycleState.UNLOCKED
        assert not session.dirty
        assert not session.requires_new_password
        assert session.envelope == envelope
        assert memory_doc.writes == 1
        assert codec.decrypt(envelope, "p@ss") == VaultPayload(vault_id, "hello")

    def test_empty_vault_can_be_saved(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        session.save("p@ss", "p@ss")
        assert codec.decrypt(session.envelope, "p@ss").content == ""

    def test_lock_discards_pristine_vault(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        old_id = session.vault_id
        session.edit("draft")
        session.lock()
        assert session.state is LifecycleState.PRISTINE
        assert session.content == ""
        assert not session.dirty
        assert session.vault_id != old_id

    def test_rekey_on_pristine_is_state_error(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        with pytest.raises(StateError):
            session.rekey("n", "n")

    def test_submit_password_on_pristine_is_state_error(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        with pytest.raises(StateError):
            session.submit_password("p@ss")


class TestUnlock:
    def test_existing_document_is_locked(self, codec):
        doc, _ = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        assert session.state is LifecycleState.LOCKED
        assert not session.is_unlocked
        assert not session.dirty

    def test_locked_content_is_unreadable(self, codec):
        doc, _ = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        with pytest.raises(StateError):
            session.content
        with pytest.raises(StateError):
            session.edit("x")
        with pytest.raises(StateError):
            session.save()

    def test_unlock(self, codec):
        doc, vault_id = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        session.submit_password("p@ss")
        assert session.state is LifecycleState.UNLOCKED
        assert session.content == "hello"
        assert session.vault_id == vault_id
        assert not session.dirty
        assert not session.requires_new_password

    def test_wrong_password_stays_locked(self, codec):
        doc, _ = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        with pytest.raises(AuthFailure) as excinfo:
            session.submit_password("wrong")
        assert str(excinfo.value) == INVALID_PASSWORD
        assert session.state is LifecycleState.LOCKED
        session.submit_password("p@ss")
        assert session.content == "hello"

    def test_empty_password_is_auth_failure(self, codec):
        doc, _ = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        with pytest.raises(AuthFailure):
            session.submit_password("")

    def test_unlock_twice_is_state_error(self, codec):
        doc, _ = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        session.submit_password("p@ss")
        with pytest.raises(StateError):
            session.submit_password("p@ss")

    def test_lock_then_unlock_again(self, codec):
        doc, _ = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        session.submit_password("p@ss")
        session.edit("unsaved")
        session.lock()
        assert session.state is LifecycleState.LOCKED
        assert not session.dirty
        session.submit_password("p@ss")
        assert session.content == "hello"


class TestSave:
    def test_save_reuses_password(self, codec):
        doc, vault_id = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        session.submit_password("p@ss")
        session.edit("hello world")
        assert session.dirty
        envelope = session.save()
        assert not session.dirty
        assert codec.decrypt(envelope, "p@ss") == VaultPayload(vault_id, "hello world")

    def test_save_content_with_lone_surrogate(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        session.edit("x\udcff")
        session.save("p\udcff", "p\udcff")
        assert not session.dirty
        session.lock()
        session.submit_password("p\udcff")
        assert session.content == "x\udcff"

    def test_save_ignores_password_arguments_once_unlocked(self, codec):
        doc, _ = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        session.submit_password("p@ss")
        envelope = session.save("other", "different")
        assert codec.decrypt(envelope, "p@ss").content == "hello"

    def test_each_save_uses_fresh_salt_and_iv(self, codec):
        doc, _ = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        session.submit_password("p@ss")
        e1 = session.save()
        e2 = session.save()
        assert e1.salt != e2.salt
        assert e1.iv != e2.iv

    def test_vault_id_survives_saves(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        vault_id = session.vault_id
        session.save("p@ss", "p@ss")
        session.edit("more")
        session.save()
        reopened = VaultSession(memory_doc, codec=codec)
        reopened.submit_password("p@ss")
        assert reopened.vault_id == vault_id
        assert reopened.content == "more"

    def test_persistence_failure_keeps_session_dirty(self, codec):
        doc, _ = _saved_vault(codec)
        flaky = FlakyDocument(doc.artifact)
        session = VaultSession(flaky, codec=codec)
        session.submit_password("p@ss")
        before = session.envelope
        session.edit("changed")
        flaky.fail = True
        with pytest.raises(PersistenceFailure):
            session.save()
        assert session.dirty
        assert session.envelope is before
        assert flaky.artifact == doc.artifact
        flaky.fail = False
        session.save()
        assert not session.dirty

    def test_os_error_becomes_persistence_failure(self, codec):
        flaky = FlakyDocument(error=PermissionError(13, "Permission denied"))
        session = VaultSession(flaky, codec=codec)
        session.edit("hello")
        flaky.fail = True
        with pytest.raises(PersistenceFailure) as excinfo:
            session.save("p@ss", "p@ss")
        assert isinstance(excinfo.value.__cause__, PermissionError)
        assert session.state is LifecycleState.PRISTINE
        assert session.requires_new_password

    def test_failed_first_save_can_retry_with_new_password(self, codec):
        flaky = FlakyDocument()
        session = VaultSession(flaky, codec=codec)
        session.edit("hello")
        flaky.fail = True
        with pytest.raises(PersistenceFailure):
            session.save("first", "first")
        flaky.fail = False
        envelope = session.save("second", "second")
        assert codec.decrypt(envelope, "second").content == "hello"


class TestRekey:
    def _unlocked(self, codec):
        doc, vault_id = _saved_vault(codec, password="A")
        session = VaultSession(doc, codec=codec)
        session.submit_password("A")
        return doc, session, vault_id

    def test_rekey_mismatch_leaves_vault_alone(self, codec):
        doc, session, _ = self._unlocked(codec)
        original = doc.artifact
        with pytest.raises(ValidationError) as excinfo:
            session.rekey("B", "C")
        assert excinfo.value.message == PASSWORD_MISMATCH
        assert doc.artifact == original
        assert doc.writes == 0
        session.lock()
        session.submit_password("A")
        assert session.content == "hello"

    def test_rekey_empty(self, codec):
        _, session, _ = self._unlocked(codec)
        with pytest.raises(ValidationError) as excinfo:
            session.rekey("", "")
        assert excinfo.value.message == EMPTY_PASSWORD

    def test_rekey(self, codec):
        doc, session, vault_id = self._unlocked(codec)
        envelope = session.rekey("B", "B")
        assert codec.decrypt(envelope, "B") == VaultPayload(vault_id, "hello")
        with pytest.raises(AuthFailure):
            codec.decrypt(envelope, "A")
        session.lock()
        with pytest.raises(AuthFailure):
            session.submit_password("A")
        session.submit_password("B")
        assert session.content == "hello"

    def test_later_saves_use_new_password(self, codec):
        _, session, _ = self._unlocked(codec)
        session.rekey("B", "B")
        session.edit("after rekey")
        envelope = session.save()
        assert codec.decrypt(envelope, "B").content == "after rekey"

    def test_rekey_persists_unsaved_edits(self, codec):
        _, session, _ = self._unlocked(codec)
        session.edit("edited")
        envelope = session.rekey("B", "B")
        assert not session.dirty
        assert codec.decrypt(envelope, "B").content == "edited"

    def test_rekey_persist_failure_keeps_old_password(self, codec):
        doc, _ = _saved_vault(codec, password="A")
        flaky = FlakyDocument(doc.artifact)
        session = VaultSession(flaky, codec=codec)
        session.submit_password("A")
        flaky.fail = True
        with pytest.raises(PersistenceFailure):
            session.rekey("B", "B")
        flaky.fail = False
        envelope = session.save()
        assert codec.decrypt(envelope, "A").content == "hello"

    def test_rekey_when_locked_is_state_error(self, codec):
        doc, _ = _saved_vault(codec)
        session = VaultSession(doc, codec=codec)
        with pytest.raises(StateError):
            session.rekey("B", "B")


class TestClose:
    def test_closed_session_rejects_everything(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        session.close()
        assert session.closed
        assert not session.dirty
        for call in (
            lambda: session.content,
            lambda: session.edit("x"),
            lambda: session.save("p", "p"),
            lambda: session.lock(),
        ):
            with pytest.raises(StateError):
                call()

    def test_close_is_idempotent(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        session.close()
        session.close()
        assert session.closed

    def test_repr_hides_content(self, codec, memory_doc):
        session = VaultSession(memory_doc, codec=codec)
        session.edit("top secret")
        assert "top secret" not in repr(session)
