"""
luaucx: encrypted containers for Luau bytecode.

Features:

- Fixed 60-byte little-endian header (magic, version, cipher id, key id,
  declared lengths, nonce, tag) followed by ciphertext and associated data.
- XChaCha20-Poly1305 via PyCryptodomex; associated data is stored in clear
  but bound to the tag.
- Defensive decoding: every header field and declared length is checked
  before the cipher runs, and nothing is emitted unless the tag verifies.
- CLI to compile (via luau-compile), encrypt, decrypt and inspect files in
  batches, isolating per-file failures.

The key ID is stored in the header but is not authenticated. Callers that
need it bound should include it in the associated data.
"""

__version__ = "0.1"

from .encoder import encode, encode_bytes
from .decoder import decode, decode_bytes, inspect
from .header import CipherSuite, Header

__all__ = [
    "constants",
    "errors",
    "header",
    "aead",
    "encoder",
    "decoder",
    "compiler",
    "encode",
    "encode_bytes",
    "decode",
    "decode_bytes",
    "inspect",
    "CipherSuite",
    "Header",
]
