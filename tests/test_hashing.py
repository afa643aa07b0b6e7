import hashlib

import pytest

from src.ingestion.hashing import ContentHasher


def test_digest_is_sha256_hex():
    hasher = ContentHasher()
    digest = hasher.digest(b"Arrest report, 5 Jan 2024")
    assert digest == hashlib.sha256(b"Arrest report, 5 Jan 2024").hexdigest()
    assert len(digest) == 64
    assert hasher.digest(b"Arrest report, 5 Jan 2024") == digest


def test_text_is_hashed_as_utf8():
    hasher = ContentHasher()
    assert hasher.digest("Señor Doe") == hasher.digest("Señor Doe".encode("utf-8"))


def test_digest_changes_with_content():
    hasher = ContentHasher()
    assert hasher.digest(b"version 1") != hasher.digest(b"version 2")


def test_empty_payload_has_a_digest():
    assert ContentHasher().digest(b"") == hashlib.sha256(b"").hexdigest()


def test_prefix_mode_only_reads_the_prefix():
    hasher = ContentHasher(prefix_bytes=4)
    assert hasher.digest(b"abcdXXXX") == hasher.digest(b"abcdYYYY")
    assert hasher.digest(b"abcdXXXX") == hashlib.sha256(b"abcd").hexdigest()


@pytest.mark.parametrize("prefix", [0, -1])
def test_prefix_must_be_positive(prefix):
    with pytest.raises(ValueError):
        ContentHasher(prefix_bytes=prefix)
