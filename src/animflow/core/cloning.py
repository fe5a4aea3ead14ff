"""Single structural-clone utility.

Every handler that transforms upstream state works on a copy produced here.
ExecutionContext already hands out owned copies of upstream values; this
module is what it (and the duplicate/animation executors) use to make them.
"""

from __future__ import annotations

import copy
from typing import TypeVar

T = TypeVar("T")


def clone(value: T) -> T:
    """Return an independent deep copy of `value`.

    Frozen dataclasses, pydantic models and sentinels are supported;
    sentinels return themselves.
    """
    return copy.deepcopy(value)
