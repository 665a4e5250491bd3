class LuaucxError(Exception):
    """Base class for luaucx-specific errors."""


class InvalidKeyError(LuaucxError):
    """Key material is not exactly 32 bytes."""


# Container parsing
class FormatError(LuaucxError):
    """Bad magic, unsupported version or unsupported cipher id."""


class TruncatedInputError(LuaucxError):
    """A fixed or declared field length runs past the end of the buffer."""


class KeyIdMismatchError(LuaucxError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"key ID mismatch (expected {expected}, got {actual})")
        self.expected = expected
        self.actual = actual


class AuthenticationError(LuaucxError):
    """Tag verification failed: tampered data, wrong key, nonce or AD."""


class SinkError(LuaucxError):
    """The caller-supplied writer failed; the underlying error is chained."""


# Collaborators
class CompileError(LuaucxError):
    pass


class KeyFileError(LuaucxError):
    pass
