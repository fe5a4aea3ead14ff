"""Sentinel values shared by node executors.

NO_INPUT distinguishes "nothing was connected" from a connected value that
happens to be None. Result nodes publish it when their input port is empty
so the output table stays total.

Example usage:
    from animflow.contracts.sentinels import NO_INPUT

    if value is NO_INPUT:
        # Result node had nothing connected
        ...
"""

from typing import Final


class NoInputSentinel:
    """Sentinel class marking an unconnected result port.

    This is a singleton - use the NO_INPUT instance, not the class directly.
    Comparison should always use `is` identity, never equality.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "<NO_INPUT>"

    def __deepcopy__(self, memo: dict[int, object]) -> "NoInputSentinel":
        return self


NO_INPUT: Final[NoInputSentinel] = NoInputSentinel()
"""Singleton sentinel published by result nodes with no connected input.

Use identity comparison: `if value is NO_INPUT:`
"""
