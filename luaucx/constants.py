# Magic and version
MAGIC = b"LUAUBYTX"  # 8 bytes
FORMAT_VERSION = 1

# Cipher suite identifiers (see luaucx.header.CipherSuite)
CIPHER_XCHACHA20_POLY1305 = 1

KEY_SIZE = 32
NONCE_SIZE = 24
TAG_SIZE = 16

# magic[8], version u8, cipher_id u8, key_id u16, ad_len u32, ct_len u32, nonce[24], tag[16]
HEADER_LEN = len(MAGIC) + 1 + 1 + 2 + 4 + 4 + NONCE_SIZE + TAG_SIZE  # 60

MAX_KEY_ID = 0xFFFF
MAX_FIELD_LEN = 0xFFFFFFFF

# File extensions used by the command-line tool
CONTAINER_EXT = ".luaucx"
BYTECODE_EXT = ".luauc"
AAD_EXT = ".aad"
