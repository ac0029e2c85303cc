from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from tx_engine.core.validation import is_tai

HISTORY_CAP = 200


class Label(str, Enum):
    TAI = "TAI"  # sum >= 11
    XIU = "XIU"


@dataclass(frozen=True)
class RoundOutcome:
    total: int
    label: Label

    @classmethod
    def from_total(cls, total: int) -> "RoundOutcome":
        return cls(total=total, label=Label.TAI if is_tai(total) else Label.XIU)

    @classmethod
    def from_dice(cls, d1: int, d2: int, d3: int) -> "RoundOutcome":
        return cls.from_total(d1 + d2 + d3)


class RollingHistory:
    """Chronological window of the most recent rounds, oldest first."""

    def __init__(self, cap: int = HISTORY_CAP, rounds: Iterable[RoundOutcome] = ()):
        self.cap = cap
        self._buf: deque[RoundOutcome] = deque(rounds, maxlen=cap)

    def record(self, outcome: RoundOutcome):
        self._buf.append(outcome)

    def snapshot(self) -> tuple[RoundOutcome, ...]:
        return tuple(self._buf)

    def labels(self) -> list[Label]:
        return [r.label for r in self._buf]

    def clear(self):
        self._buf.clear()

    def __len__(self) -> int:
        return len(self._buf)

    def __iter__(self):
        return iter(self._buf)


def tail_streak(rounds: Iterable[RoundOutcome]) -> tuple[Label | None, int]:
    """Label of the last round and how many rounds in a row ended with it."""
    rounds = list(rounds)
    if not rounds:
        return None, 0
    last = rounds[-1].label
    n = 1
    for i in range(len(rounds) - 2, -1, -1):
        if rounds[i].label != last:
            break
        n += 1
    return last, n
