from __future__ import annotations

import random
from typing import Callable, Optional

from ..core.constants import MEMBER_ID_PREFIX

_DIGITS = "23456789"
_MAX_TRIES = 50


def generate_member_id(exists: Callable[[str], bool], *, rng: Optional[random.Random] = None) -> str:
    """``MRM`` followed by four digits from 2-9, unique according to ``exists``."""
    rng = rng or random.SystemRandom()
    for _ in range(_MAX_TRIES):
        candidate = MEMBER_ID_PREFIX + "".join(rng.choice(_DIGITS) for _ in range(4))
        if not exists(candidate):
            return candidate
    raise RuntimeError("Could not allocate a unique member id")
