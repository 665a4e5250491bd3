from __future__ import annotations

import io
from typing import BinaryIO, Optional, Tuple

from .aead import engine_for
from .constants import MAGIC, FORMAT_VERSION, KEY_SIZE, HEADER_LEN
from .errors import FormatError, InvalidKeyError, KeyIdMismatchError
from .header import Buffer, CipherSuite, Cursor, Header, parse_header
from .sinkutil import write_all


def _validate_header(buf: Buffer, expected_key_id: Optional[int]) -> Tuple[Header, CipherSuite]:
    # Cheapest checks first; declared lengths are only trusted after the
    # fixed fields check out.
    header = parse_header(buf)
    if header.magic != MAGIC:
        raise FormatError("invalid bytecode: bad magic")
    if header.version != FORMAT_VERSION:
        raise FormatError(f"unsupported version {header.version}")
    suite = CipherSuite.lookup(header.cipher_id)
    if suite is None:
        raise FormatError(f"unsupported aead id {header.cipher_id}")
    if expected_key_id is not None and expected_key_id != header.key_id:
        raise KeyIdMismatchError(expected_key_id, header.key_id)
    return header, suite


def inspect(container: Buffer) -> Header:
    """Validate and return the header of ``container`` without decrypting.

    Checks magic, version, cipher id and that the declared body fits in the
    buffer. Authentication still requires the key (see ``decode``).
    """
    header, _suite = _validate_header(container, None)
    cur = Cursor(container, HEADER_LEN)
    cur.take(header.ct_len, "ct body")
    cur.take(header.ad_len, "associated data")
    return header


def decode(
    container: Buffer,
    key: bytes,
    expected_key_id: Optional[int] = None,
    *,
    plaintext_sink: BinaryIO,
    aad_sink: Optional[BinaryIO] = None,
) -> Tuple[int, Optional[int]]:
    """Validate, authenticate and decrypt a container.

    The cipher only runs once every header field and both declared lengths
    have been checked. Nothing is written to either sink unless the tag
    verifies. Bytes past the declared body are ignored.

    Returns:
        (plaintext length, associated data length or None when ``aad_sink``
        is not given)
    """
    if len(key) != KEY_SIZE:
        raise InvalidKeyError(f"key must be {KEY_SIZE} bytes (got {len(key)})")

    header, suite = _validate_header(container, expected_key_id)
    cur = Cursor(container, HEADER_LEN)
    ct = bytes(cur.take(header.ct_len, "ct body"))
    ad = bytes(cur.take(header.ad_len, "associated data"))

    plaintext = engine_for(suite).open(key, header.nonce, ct, header.tag, ad)

    ad_written = None
    if aad_sink is not None:
        ad_written = write_all(aad_sink, ad, "additional data")
    write_all(plaintext_sink, plaintext, "plaintext")
    return len(plaintext), ad_written


def decode_bytes(container: Buffer, key: bytes, expected_key_id: Optional[int] = None) -> Tuple[bytes, bytes]:
    out = io.BytesIO()
    ad = io.BytesIO()
    decode(container, key, expected_key_id, plaintext_sink=out, aad_sink=ad)
    return out.getvalue(), ad.getvalue()
