from __future__ import annotations

import io
from typing import BinaryIO, Optional

from .aead import engine_for
from .constants import KEY_SIZE, NONCE_SIZE, MAX_KEY_ID, MAX_FIELD_LEN
from .errors import InvalidKeyError
from .header import CipherSuite, Header, write_header
from .prng import RandomSource, system_random
from .sinkutil import write_all


def encode(
    plaintext: bytes,
    key: bytes,
    key_id: int = 0,
    aad: bytes = b"",
    *,
    sink: BinaryIO,
    nonce: Optional[bytes] = None,
    random_source: RandomSource = system_random,
) -> int:
    """Encrypt ``plaintext`` into a container written to ``sink``.

    Args:
        plaintext: Bytes to encrypt (e.g. Luau bytecode).
        key: 32-byte key.
        key_id: Operator-assigned key identifier stored in the header (u16).
            It is not authenticated; fold it into ``aad`` to bind it.
        aad: Associated data, stored in clear after the ciphertext and bound
            to the tag.
        sink: Binary writer receiving the container.
        nonce: Fixed 24-byte nonce. When omitted, ``random_source`` is asked
            for one. Never reuse a nonce with the same key.
        random_source: Callable returning ``n`` random bytes.

    Returns:
        Number of bytes written: 60 + len(plaintext) + len(aad).
    """
    if len(key) != KEY_SIZE:
        raise InvalidKeyError(f"key must be {KEY_SIZE} bytes (got {len(key)})")
    if not 0 <= key_id <= MAX_KEY_ID:
        raise ValueError(f"key ID out of range: {key_id}")
    if len(plaintext) > MAX_FIELD_LEN:
        raise ValueError("plaintext too large for the ct_len field")
    if len(aad) > MAX_FIELD_LEN:
        raise ValueError("associated data too large for the ad_len field")
    if nonce is None:
        nonce = random_source(NONCE_SIZE)
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be {NONCE_SIZE} bytes (got {len(nonce)})")

    suite = CipherSuite.XCHACHA20_POLY1305
    ciphertext, tag = engine_for(suite).seal(key, nonce, plaintext, aad)
    header = Header(
        key_id=key_id,
        ad_len=len(aad),
        ct_len=len(ciphertext),
        nonce=bytes(nonce),
        tag=tag,
        cipher_id=int(suite),
    )

    written = write_header(sink, header)
    written += write_all(sink, ciphertext, "ciphertext")
    written += write_all(sink, aad, "associated data")
    return written


def encode_bytes(
    plaintext: bytes,
    key: bytes,
    key_id: int = 0,
    aad: bytes = b"",
    *,
    nonce: Optional[bytes] = None,
    random_source: RandomSource = system_random,
) -> bytes:
    buf = io.BytesIO()
    encode(plaintext, key, key_id, aad, sink=buf, nonce=nonce, random_source=random_source)
    return buf.getvalue()
