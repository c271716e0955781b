"""
Zarf şifreleme: bildirim gövdesi AES-256-GCM ile şifrelenir.

Anahtar hiçbir zaman master key'in kendisi değildir; her nonce için
PBKDF2-HMAC-SHA256 (salt = nonce) ile türetilir. Nonce şifreli metinle
birlikte taşınır, bu yüzden önbellekten düşen anahtar her zaman yeniden
türetilebilir. Çıktı biçimi tarayıcıdaki WebCrypto ile uyumludur:
base64(şifreli metin || 16 bayt etiket) ve base64(12 bayt nonce).
"""
import base64
import binascii
import hashlib
import logging
import secrets
import threading

from cachetools import TTLCache
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from pushgate.core.errors import CryptoError, DecryptionError

log = logging.getLogger("pushgate.crypto")

KEY_SIZE = 32  # AES-256
NONCE_SIZE = 12  # 96 bit
ITERATIONS = 10_000
CONTENT_UNAVAILABLE = "[İçerik görüntülenemiyor]"

# Türetilmiş anahtarlar: (master key özeti, nonce) -> anahtar. Yalnızca hız için.
_key_cache: TTLCache = TTLCache(maxsize=100, ttl=60 * 60)
_key_cache_lock = threading.Lock()


def _b64decode(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise DecryptionError(f"Invalid base64 {what}") from e


def derive_key(master_key: str, nonce: bytes) -> bytes:
    if not master_key:
        raise CryptoError("Master key missing")
    cache_key = (hashlib.sha256(master_key.encode("utf-8")).digest(), bytes(nonce))
    with _key_cache_lock:
        cached = _key_cache.get(cache_key)
    if cached is not None:
        return cached
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=bytes(nonce),
        iterations=ITERATIONS,
    )
    key = kdf.derive(master_key.encode("utf-8"))
    with _key_cache_lock:
        _key_cache[cache_key] = key
    return key


def clear_key_cache() -> None:
    with _key_cache_lock:
        _key_cache.clear()


def encrypt(plaintext: str, master_key: str) -> tuple[str, str]:
    """(şifreli_metin_b64, nonce_b64) döner. Her çağrıda yeni rastgele nonce."""
    nonce = secrets.token_bytes(NONCE_SIZE)
    key = derive_key(master_key, nonce)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    return (
        base64.b64encode(ciphertext).decode("ascii"),
        base64.b64encode(nonce).decode("ascii"),
    )


def decrypt(ciphertext: str, master_key: str, nonce: str) -> str:
    """
    Şifreyi çözer. Etiket uyuşmazlığı, bozuk girdi veya eksik master key
    DecryptionError olarak yükselir; çağıran yedek metin göstermelidir.
    """
    if not master_key:
        raise DecryptionError("Master key missing")
    raw_nonce = _b64decode(nonce or "", "nonce")
    if len(raw_nonce) != NONCE_SIZE:
        raise DecryptionError("Invalid nonce length")
    data = _b64decode(ciphertext or "", "ciphertext")
    key = derive_key(master_key, raw_nonce)
    try:
        plaintext = AESGCM(key).decrypt(raw_nonce, data, None)
    except InvalidTag as e:
        raise DecryptionError("Authentication tag mismatch") from e
    except ValueError as e:
        raise DecryptionError("Malformed ciphertext") from e
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError("Plaintext is not valid UTF-8") from e


def display_content(ciphertext: str, master_key: str | None, nonce: str | None) -> str:
    """Gösterim için: çözülemezse şifreli metin yerine sabit yer tutucu döner."""
    try:
        return decrypt(ciphertext, master_key or "", nonce or "")
    except CryptoError as e:
        log.info("Encrypted content unavailable: %s", e)
        return CONTENT_UNAVAILABLE
