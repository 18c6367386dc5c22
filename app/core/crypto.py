"""AES-256-CBC encryption for secrets stored at rest.

Ciphertext format is ``"<iv hex>:<ciphertext hex>"``. The ciphertext segment
ends with an HMAC-SHA256 tag over IV and ciphertext (encrypt-then-MAC), so a
modified value is rejected instead of decrypting to garbage.

Never log plaintext, the master key, or anything derived from them.
"""

import binascii
import os
import re
from functools import lru_cache

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.hmac import HMAC

from app.core.errors import ConfigurationError, DecryptionError, EncryptionError

KEY_BYTES = 32
IV_BYTES = 16
TAG_BYTES = 32
DELIMITER = ":"

_HEX_RE = re.compile(r"^[0-9a-f]+$")
_MAC_KEY_LABEL = b"academy-secret-store:mac"


def generate_master_key() -> str:
    """Return a fresh random 32-byte key, hex encoded (for MASTER_KEY)."""
    return os.urandom(KEY_BYTES).hex()


def _parse_master_key(master_key_hex: str | None) -> bytes:
    if not master_key_hex:
        raise ConfigurationError("MASTER_KEY is not set")
    value = master_key_hex.strip()
    if len(value) != KEY_BYTES * 2:
        raise ConfigurationError("MASTER_KEY must be 64 hex characters (32 bytes)")
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise ConfigurationError("MASTER_KEY must be 64 hex characters (32 bytes)") from None


class SecretCipher:
    """Symmetric cipher bound to one master key."""

    def __init__(self, master_key_hex: str | None) -> None:
        self._key = _parse_master_key(master_key_hex)
        derive = HMAC(self._key, hashes.SHA256())
        derive.update(_MAC_KEY_LABEL)
        self._mac_key = derive.finalize()

    def __repr__(self) -> str:
        return "SecretCipher(<redacted>)"

    def _tag(self, iv: bytes, ciphertext: bytes) -> bytes:
        mac = HMAC(self._mac_key, hashes.SHA256())
        mac.update(iv + ciphertext)
        return mac.finalize()

    def encrypt(self, plaintext: str) -> str:
        """Encrypt with a fresh IV; returns ``iv:ciphertext`` (hex)."""
        try:
            iv = os.urandom(IV_BYTES)
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
            encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
            tag = self._tag(iv, ciphertext)
        except (TypeError, ValueError, AttributeError):
            raise EncryptionError() from None
        return f"{iv.hex()}{DELIMITER}{(ciphertext + tag).hex()}"

    def decrypt(self, encrypted: str) -> str:
        """Reverse ``encrypt``. Malformed or tampered input raises DecryptionError."""
        if not isinstance(encrypted, str) or encrypted.count(DELIMITER) != 1:
            raise DecryptionError()
        iv_hex, body_hex = encrypted.split(DELIMITER)
        if len(iv_hex) != IV_BYTES * 2 or not _HEX_RE.match(iv_hex) or not _HEX_RE.match(body_hex):
            raise DecryptionError()
        try:
            iv = bytes.fromhex(iv_hex)
            body = bytes.fromhex(body_hex)
        except (ValueError, binascii.Error):
            raise DecryptionError() from None
        block_bytes = algorithms.AES.block_size // 8
        if len(body) <= TAG_BYTES or (len(body) - TAG_BYTES) % block_bytes:
            raise DecryptionError()
        ciphertext, tag = body[:-TAG_BYTES], body[-TAG_BYTES:]

        mac = HMAC(self._mac_key, hashes.SHA256())
        mac.update(iv + ciphertext)
        try:
            mac.verify(tag)
        except InvalidSignature:
            raise DecryptionError() from None

        try:
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            raise DecryptionError() from None


@lru_cache
def get_cipher() -> SecretCipher:
    """Cipher built from MASTER_KEY in settings (read-only after startup)."""
    # Deferred: generate_master_key must work before MASTER_KEY exists.
    from app.core.config import get_settings

    return SecretCipher(get_settings().MASTER_KEY.get_secret_value())
