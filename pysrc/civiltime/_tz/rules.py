"""The offsets of a time zone over time, and resolution of local times."""

from __future__ import annotations

from typing import Optional, Sequence

from .common import Ambiguity, EpochSecs, Gap, Offset, Overlap, Unambiguous
from .posix import PosixTz

# (UTC epoch seconds, offset before, offset after)
TransitionTuple = tuple[EpochSecs, Offset, Offset]


class TimeZoneRules:
    """Offsets over time: an initial offset, a sorted series of transitions,
    and optionally a recurring rule which applies after the last transition.
    """

    __slots__ = (
        "__weakref__",
        "initial",
        "transitions",
        "recurring",
        "_by_local",
    )

    initial: Offset
    transitions: tuple[TransitionTuple, ...]
    recurring: Optional[PosixTz]

    # For local -> UTC, a transition may be ambiguous and therefore requires
    # extra information. Read (X, Y, Z) as "UNTIL local time X (in epoch
    # seconds), the offset is Y. At this point it shifts by Z."
    # X is the latest local time at which the shift has any effect.
    _by_local: tuple[tuple[EpochSecs, Offset, int], ...]

    def __init__(
        self,
        initial: Offset,
        transitions: Sequence[TransitionTuple] = (),
        recurring: Optional[PosixTz] = None,
    ):
        prev_time: Optional[EpochSecs] = None
        prev_offset = initial
        for time, before, after in transitions:
            if prev_time is not None and time <= prev_time:
                raise ValueError("Transitions must be strictly increasing")
            if before != prev_offset:
                raise ValueError(
                    "Offset before a transition must match the offset "
                    f"after the previous one at {time}"
                )
            if before == after:
                raise ValueError(f"Transition at {time} doesn't change offset")
            prev_time, prev_offset = time, after

        self.initial = initial
        self.transitions = tuple(transitions)
        self.recurring = recurring
        self._by_local = tuple(
            (time + max(before, after), before, after - before)
            for time, before, after in self.transitions
        )

    @classmethod
    def fixed(cls, offset: Offset) -> TimeZoneRules:
        return cls(offset)

    @property
    def is_fixed(self) -> bool:
        return not self.transitions and (
            self.recurring is None or self.recurring.dst is None
        )

    def offset_for_instant(self, t: EpochSecs) -> Offset:
        """The offset at the given UTC epoch second"""
        idx = bisect(self.transitions, t)
        if idx == len(self.transitions) and self.recurring is not None:
            return self.recurring.offset_for_instant(t)
        elif idx == 0:
            return self.initial
        return self.transitions[idx - 1][2]

    def ambiguity_for_local(self, t: EpochSecs) -> Ambiguity:
        """The offset(s) for a local time, expressed in local epoch seconds"""
        idx = bisect(self._by_local, t)
        if idx < len(self._by_local):
            end, offset, change = self._by_local[idx]
            if t < end - abs(change):
                return Unambiguous(offset)
            elif change < 0:
                return Overlap(offset, offset + change)
            return Gap(offset, offset + change)

        # After the last transition
        if self.recurring is not None:
            return self.recurring.ambiguity_for_local(t)
        elif self.transitions:
            return Unambiguous(self.transitions[-1][2])
        return Unambiguous(self.initial)

    def resolve_local(
        self, t: EpochSecs, prefer: Optional[Offset] = None
    ) -> tuple[EpochSecs, Offset]:
        """Pick an offset for a local time (in local epoch seconds).

        Returns the (possibly shifted) local time along with the offset:

        - If the local time is unambiguous, its one offset is used.
        - In an overlap, the preferred offset is used if it's one of the two
          candidates. Otherwise the candidate closest to it is used.
          Ties, or no preference, resolve to the earlier offset.
        - In a gap, the local time is shifted forward by the length of the
          gap and the offset after the transition is used.
        """
        ambiguity = self.ambiguity_for_local(t)
        if isinstance(ambiguity, Unambiguous):
            return t, ambiguity.offset
        elif isinstance(ambiguity, Overlap):
            before, after = ambiguity.before, ambiguity.after
            if prefer is None or prefer == before:
                return t, before
            elif prefer == after:
                return t, after
            elif abs(prefer - after) < abs(prefer - before):
                return t, after
            return t, before
        else:  # isinstance(ambiguity, Gap)
            return t + ambiguity.after - ambiguity.before, ambiguity.after

    def valid_offsets(self, t: EpochSecs) -> tuple[Offset, ...]:
        """All offsets at which the local time exists: none, one, or two"""
        ambiguity = self.ambiguity_for_local(t)
        if isinstance(ambiguity, Unambiguous):
            return (ambiguity.offset,)
        elif isinstance(ambiguity, Overlap):
            return (ambiguity.before, ambiguity.after)
        return ()

    # NOTE: this equality check needs to be fast, since it's used in
    # some routines to check if the timezone is indeed changing.
    def __eq__(self, other: object) -> bool:
        # Identity is the cheapest check, and the common case
        if self is other:
            return True
        elif type(other) is TimeZoneRules:
            return (
                self.initial == other.initial
                and self.transitions == other.transitions
                and self.recurring == other.recurring
            )
        return NotImplemented  # pragma: no cover

    def __hash__(self) -> int:
        return hash((self.initial, self.transitions, self.recurring))

    def __repr__(self) -> str:
        return (
            f"TimeZoneRules(initial={self.initial}, "
            f"transitions=<{len(self.transitions)}>, "
            f"recurring={self.recurring!r})"
        )


def bisect(
    arr: Sequence[tuple[EpochSecs, object, object]], x: EpochSecs
) -> int:
    """The number of entries whose time is at or before ``x``"""
    left, right = 0, len(arr)
    while left < right:
        mid = (left + right) // 2
        if x >= arr[mid][0]:
            left = mid + 1
        else:
            right = mid
    return left
