"""Shared fixtures. Key derivation runs at a low iteration count for speed."""

import logging

import pytest

from vaultpad.core.codec import EnvelopeCodec
from vaultpad.core.kdf import Pbkdf2KDF
from vaultpad.document import MemoryDocument

FAST_ITERATIONS = 1_000


@pytest.fixture(autouse=True)
def reset_vaultpad_logger():
    """Drop handlers configure_logging() attached during a test."""
    yield
    logger = logging.getLogger("vaultpad")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def fast_kdf():
    return Pbkdf2KDF(iterations=FAST_ITERATIONS)


@pytest.fixture
def codec(fast_kdf):
    return EnvelopeCodec(kdf=fast_kdf)


@pytest.fixture
def memory_doc():
    return MemoryDocument()


@pytest.fixture
def fast_default_codec(monkeypatch):
    """Make every default-constructed EnvelopeCodec use the fast KDF."""
    monkeypatch.setattr(
        "vaultpad.core.codec.Pbkdf2KDF",
        lambda: Pbkdf2KDF(iterations=FAST_ITERATIONS),
    )
