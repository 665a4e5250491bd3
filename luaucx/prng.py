from __future__ import annotations

import os
from typing import Callable

# A random source returns ``n`` fresh bytes when called with ``n``.
RandomSource = Callable[[int], bytes]


def system_random(n: int) -> bytes:
    return os.urandom(n)
