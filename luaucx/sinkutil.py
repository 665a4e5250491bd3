from __future__ import annotations

from typing import BinaryIO

from .errors import SinkError


def write_all(sink: BinaryIO, data, what: str) -> int:
    """Write ``data`` to ``sink``; writer failures become SinkError.

    The writer's own exception is kept as ``__cause__``.
    """
    try:
        sink.write(data)
    except (OSError, ValueError) as exc:
        raise SinkError(f"failed to write {what}: {exc}") from exc
    return len(data)
