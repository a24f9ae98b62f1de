from typing import Union

EpochSecs = int
Offset = int


class Unambiguous:
    """A local time that occurs exactly once"""

    __slots__ = ("offset",)

    def __init__(self, offset: Offset):
        self.offset = offset

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Unambiguous):
            return self.offset == other.offset
        return False  # pragma: no cover

    def __repr__(self) -> str:
        return f"Unambiguous({self.offset})"


class Gap:
    """A local time skipped by a transition, e.g. when clocks move forward.
    ``before`` and ``after`` are the offsets on either side of it."""

    __slots__ = ("before", "after")

    def __init__(self, before: Offset, after: Offset):
        self.before = before
        self.after = after

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Gap):
            return self.before == other.before and self.after == other.after
        return False  # pragma: no cover

    def __repr__(self) -> str:
        return f"Gap({self.before}, {self.after})"


class Overlap:
    """A local time that occurs twice, e.g. when clocks move back.
    ``before`` and ``after`` are the offsets on either side of the transition.
    """

    __slots__ = ("before", "after")

    def __init__(self, before: Offset, after: Offset):
        self.before = before
        self.after = after

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Overlap):
            return self.before == other.before and self.after == other.after
        return False  # pragma: no cover

    def __repr__(self) -> str:
        return f"Overlap({self.before}, {self.after})"


Ambiguity = Union[Unambiguous, Gap, Overlap]
