from __future__ import annotations

import random
from typing import Sequence

from config import GREETINGS


def pick_greeting(greetings: Sequence[str] = GREETINGS, rng=random) -> str:
    return rng.choice(greetings)
