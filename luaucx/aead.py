from __future__ import annotations

"""XChaCha20-Poly1305 (IETF) backed by PyCryptodomex.

``Cryptodome.Cipher.ChaCha20_Poly1305`` switches to the XChaCha20 variant
when given a 24-byte nonce (HChaCha20 subkey, libsodium compatible), so the
engine only has to split and join the detached tag. A fresh cipher object is
created per call and nothing derived from the key outlives the call.
"""

from typing import Dict, Tuple, Type

from Cryptodome.Cipher import ChaCha20_Poly1305

from .constants import KEY_SIZE, NONCE_SIZE, TAG_SIZE
from .errors import AuthenticationError, InvalidKeyError
from .header import CipherSuite


def _check_sizes(key: bytes, nonce: bytes) -> None:
    if len(key) != KEY_SIZE:
        raise InvalidKeyError(f"key must be {KEY_SIZE} bytes (got {len(key)})")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be {NONCE_SIZE} bytes for XChaCha20-Poly1305")


class XChaCha20Poly1305Engine:
    suite = CipherSuite.XCHACHA20_POLY1305

    @staticmethod
    def seal(key: bytes, nonce: bytes, plaintext: bytes, aad: bytes = b"") -> Tuple[bytes, bytes]:
        """Encrypt and authenticate ``plaintext``; returns (ciphertext, tag).

        Deterministic for identical inputs. The ciphertext has the same length
        as the plaintext and the tag is always 16 bytes.
        """
        _check_sizes(key, nonce)
        cipher = ChaCha20_Poly1305.new(key=bytes(key), nonce=bytes(nonce))
        cipher.update(aad)
        return cipher.encrypt_and_digest(plaintext)

    @staticmethod
    def open(key: bytes, nonce: bytes, ciphertext: bytes, tag: bytes, aad: bytes = b"") -> bytes:
        """Verify ``tag`` over (ciphertext, aad) and return the plaintext.

        Raises AuthenticationError without returning any plaintext when the
        tag does not verify.
        """
        _check_sizes(key, nonce)
        if len(tag) != TAG_SIZE:
            raise ValueError(f"authentication tag must be {TAG_SIZE} bytes")
        cipher = ChaCha20_Poly1305.new(key=bytes(key), nonce=bytes(nonce))
        cipher.update(aad)
        try:
            return cipher.decrypt_and_verify(ciphertext, tag)
        except ValueError:
            raise AuthenticationError("decryption failed: authentication tag mismatch") from None


_ENGINES: Dict[CipherSuite, Type[XChaCha20Poly1305Engine]] = {
    CipherSuite.XCHACHA20_POLY1305: XChaCha20Poly1305Engine,
}


def engine_for(suite: CipherSuite) -> Type[XChaCha20Poly1305Engine]:
    return _ENGINES[suite]


__all__ = [
    "XChaCha20Poly1305Engine",
    "engine_for",
]
