"""Zarf şifreleme: gidiş-dönüş, tazelik, bozulma ve hatalı girdi."""
import base64

import pytest

from pushgate.core.errors import CryptoError, DecryptionError
from pushgate.services import envelope
from pushgate.services.envelope import CONTENT_UNAVAILABLE, decrypt, display_content, encrypt

MASTER = "correct horse battery staple"


def test_roundtrip_unicode():
    text = "Ödeme onaylandı ✅ — 42 ₺"
    ciphertext, nonce = encrypt(text, MASTER)
    assert decrypt(ciphertext, MASTER, nonce) == text


def test_fresh_nonce_every_call():
    first = encrypt("same", MASTER)
    second = encrypt("same", MASTER)
    assert first[1] != second[1]
    assert first[0] != second[0]
    assert len(base64.b64decode(first[1])) == envelope.NONCE_SIZE


def test_tampered_ciphertext_raises_crypto_error():
    ciphertext, nonce = encrypt("hello", MASTER)
    raw = bytearray(base64.b64decode(ciphertext))
    raw[0] ^= 0x01
    tampered = base64.b64encode(bytes(raw)).decode()
    with pytest.raises(CryptoError):
        decrypt(tampered, MASTER, nonce)


def test_wrong_master_key():
    ciphertext, nonce = encrypt("hello", MASTER)
    with pytest.raises(DecryptionError):
        decrypt(ciphertext, "another key", nonce)


@pytest.mark.parametrize(
    "ciphertext,master,nonce",
    [
        ("aGVsbG8=", "", base64.b64encode(b"x" * 12).decode()),
        ("not base64!!", MASTER, base64.b64encode(b"x" * 12).decode()),
        ("aGVsbG8=", MASTER, base64.b64encode(b"short").decode()),
        ("aGVsbG8=", MASTER, base64.b64encode(b"x" * 12).decode()),
    ],
)
def test_malformed_input_is_decryption_error(ciphertext, master, nonce):
    with pytest.raises(DecryptionError):
        decrypt(ciphertext, master, nonce)


def test_decrypt_after_cache_eviction():
    ciphertext, nonce = encrypt("kalıcı", MASTER)
    envelope.clear_key_cache()
    assert decrypt(ciphertext, MASTER, nonce) == "kalıcı"


def test_derive_key_cached_per_nonce():
    envelope.clear_key_cache()
    nonce = b"n" * 12
    key = envelope.derive_key(MASTER, nonce)
    assert len(key) == envelope.KEY_SIZE
    assert envelope.derive_key(MASTER, nonce) is key
    assert envelope.derive_key(MASTER, b"m" * 12) != key


def test_encrypt_without_master_key():
    with pytest.raises(CryptoError):
        encrypt("x", "")


def test_display_content_falls_back_to_placeholder():
    ciphertext, nonce = encrypt("secret", MASTER)
    assert display_content(ciphertext, MASTER, nonce) == "secret"
    assert display_content(ciphertext, "wrong", nonce) == CONTENT_UNAVAILABLE
    assert display_content(ciphertext, None, None) == CONTENT_UNAVAILABLE
