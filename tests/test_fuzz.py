"""Fuzz tests for artifact parsing using Hypothesis.

Whatever a vault file contains, loading it must either produce a valid
envelope or raise FormatError. Decrypting random envelopes must only ever
fail with AuthFailure.
"""

import base64
import json

from hypothesis import HealthCheck, given, settings, strategies as st

from vaultpad.core.codec import EnvelopeCodec
from vaultpad.core.errors import AuthFailure, FormatError
from vaultpad.core.formats import Envelope, parse_payload
from vaultpad.core.kdf import Pbkdf2KDF
from vaultpad.document import MemoryDocument


class TestEnvelopeFuzz:
    @given(st.text())
    @settings(max_examples=500)
    def test_arbitrary_strings_never_crash(self, data: str):
        try:
            envelope = Envelope.from_json(data)
        except FormatError:
            return
        assert len(envelope.salt) == 16
        assert len(envelope.iv) == 12

    @given(st.binary())
    @settings(max_examples=300)
    def test_arbitrary_bytes_never_crash(self, data: bytes):
        try:
            Envelope.from_json(data)
        except FormatError:
            pass

    @given(st.dictionaries(
        st.sampled_from(["salt", "iv", "data", "extra"]),
        st.one_of(st.text(), st.integers(), st.none(), st.binary().map(lambda b: base64.b64encode(b).decode())),
    ))
    @settings(max_examples=500)
    def test_arbitrary_objects_never_crash(self, obj):
        try:
            Envelope.from_json(json.dumps(obj))
        except FormatError:
            pass

    @given(st.text())
    @settings(max_examples=200)
    def test_memory_document_load(self, artifact: str):
        try:
            MemoryDocument(artifact).load_envelope()
        except FormatError:
            pass


class TestPayloadFuzz:
    @given(st.binary())
    @settings(max_examples=300)
    def test_arbitrary_plaintext_never_crashes(self, raw: bytes):
        try:
            payload = parse_payload(raw)
        except FormatError:
            return
        assert isinstance(payload.content, str)
        assert isinstance(payload.vault_id, str)


class TestDecryptFuzz:
    @given(
        st.binary(min_size=16, max_size=16),
        st.binary(min_size=12, max_size=12),
        st.binary(min_size=16, max_size=256),
        st.text(max_size=20),
    )
    @settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_random_envelopes_are_auth_failures(self, salt, iv, data, password):
        codec = EnvelopeCodec(kdf=Pbkdf2KDF(iterations=10))
        try:
            codec.decrypt(Envelope(salt=salt, iv=iv, data=data), password)
        except AuthFailure:
            return
        raise AssertionError("random ciphertext authenticated")
