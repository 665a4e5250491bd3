from __future__ import annotations

"""
Fixed 60-byte header of a .luaucx container.

Layout (little endian, no padding)
- magic[8]       b"LUAUBYTX"
- version u8
- cipher_id u8
- key_id u16
- ad_len u32     length of the trailing associated data
- ct_len u32     length of the ciphertext body (tag excluded)
- nonce[24]
- tag[16]

The ciphertext body follows the header, then the associated data.
Parsing never trusts a length before checking it against the buffer.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO, Optional, Union

from .constants import (
    MAGIC,
    FORMAT_VERSION,
    CIPHER_XCHACHA20_POLY1305,
    HEADER_LEN,
    NONCE_SIZE,
    TAG_SIZE,
)
from .errors import TruncatedInputError
from .sinkutil import write_all


_HEADER_STRUCT = struct.Struct("<8sBBHII24s16s")
Buffer = Union[bytes, bytearray, memoryview]


class CipherSuite(IntEnum):
    XCHACHA20_POLY1305 = CIPHER_XCHACHA20_POLY1305

    @classmethod
    def lookup(cls, cipher_id: int) -> Optional["CipherSuite"]:
        """Return the suite for ``cipher_id`` or None when it is unsupported."""
        try:
            return cls(cipher_id)
        except ValueError:
            return None


@dataclass(frozen=True)
class Header:
    key_id: int
    ad_len: int
    ct_len: int
    nonce: bytes
    tag: bytes
    magic: bytes = MAGIC
    version: int = FORMAT_VERSION
    cipher_id: int = CIPHER_XCHACHA20_POLY1305

    @property
    def body_len(self) -> int:
        return self.ct_len + self.ad_len

    @property
    def container_len(self) -> int:
        return HEADER_LEN + self.body_len

    def pack(self) -> bytes:
        if len(self.nonce) != NONCE_SIZE:
            raise ValueError("nonce must be 24 bytes")
        if len(self.tag) != TAG_SIZE:
            raise ValueError("tag must be 16 bytes")
        return _HEADER_STRUCT.pack(
            self.magic,
            self.version,
            self.cipher_id,
            self.key_id,
            self.ad_len,
            self.ct_len,
            self.nonce,
            self.tag,
        )


class Cursor:
    """Forward-only reader over a borrowed buffer.

    Every read checks the remaining length first and raises
    TruncatedInputError naming the field instead of reading past the end.
    """

    def __init__(self, data: Buffer, pos: int = 0):
        self._view = memoryview(data)
        self.pos = pos

    @property
    def remaining(self) -> int:
        return len(self._view) - self.pos

    def take(self, n: int, field: str) -> memoryview:
        if n < 0:
            raise ValueError(f"negative length for {field}")
        if self.remaining < n:
            raise TruncatedInputError(
                f"truncated input reading {field}: need {n} bytes, have {self.remaining}"
            )
        start = self.pos
        self.pos += n
        return self._view[start : self.pos]

    def u8(self, field: str) -> int:
        return self.take(1, field)[0]

    def u16(self, field: str) -> int:
        return int.from_bytes(self.take(2, field), "little")

    def u32(self, field: str) -> int:
        return int.from_bytes(self.take(4, field), "little")


def parse_header(buf: Buffer) -> Header:
    """Read the fixed header fields. No semantic validation is done here."""
    cur = Cursor(buf)
    if cur.remaining < HEADER_LEN:
        raise TruncatedInputError(
            f"truncated input: container is {cur.remaining} bytes, header needs {HEADER_LEN}"
        )
    magic = bytes(cur.take(len(MAGIC), "magic"))
    version = cur.u8("version")
    cipher_id = cur.u8("cipher id")
    key_id = cur.u16("key id")
    ad_len = cur.u32("ad_len")
    ct_len = cur.u32("ct_len")
    nonce = bytes(cur.take(NONCE_SIZE, "nonce"))
    tag = bytes(cur.take(TAG_SIZE, "tag"))
    return Header(
        key_id=key_id,
        ad_len=ad_len,
        ct_len=ct_len,
        nonce=nonce,
        tag=tag,
        magic=magic,
        version=version,
        cipher_id=cipher_id,
    )


def write_header(sink: BinaryIO, header: Header) -> int:
    """Write the packed header, nonce and tag; writer failures become SinkError."""
    return write_all(sink, header.pack(), "header")
