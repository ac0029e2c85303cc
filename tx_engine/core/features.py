from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from tx_engine.core.history import Label, RoundOutcome, tail_streak

# Dice are not known before the round resolves; the dice family then collapses
# to one constant key and carries no information at predict time.
NO_DICE = (0, 0, 0)

TREND_WINDOW = 6
TREND_MIN_TAI = 4


class FeatureFamily(str, Enum):
    SUM = "sum"
    RANGE = "range"
    PARITY = "parity"
    DICE = "dice"
    TREND6 = "trend6"
    STREAK = "streak"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class FeatureKey:
    family: FeatureFamily
    value: str

    def __str__(self) -> str:
        return f"{self.family.value}:{self.value}"


def build_keys(history: Sequence[RoundOutcome], total: int,
               dice: tuple[int, int, int] = NO_DICE) -> list[FeatureKey]:
    history = list(history)
    keys = [
        FeatureKey(FeatureFamily.SUM, str(total)),
        FeatureKey(FeatureFamily.RANGE, "LOW" if total <= 10 else "HIGH"),
        FeatureKey(FeatureFamily.PARITY, str(total % 2)),
        FeatureKey(FeatureFamily.DICE, "-".join(str(d) for d in sorted(dice))),
    ]

    if len(history) >= TREND_WINDOW:
        n_tai = sum(1 for r in history[-TREND_WINDOW:] if r.label == Label.TAI)
        keys.append(FeatureKey(FeatureFamily.TREND6, "TREND" if n_tai >= TREND_MIN_TAI else "NOTREND"))

    last, run = tail_streak(history)
    if last is not None:
        keys.append(FeatureKey(FeatureFamily.STREAK, f"{last.value}:{run}"))
        keys.append(FeatureKey(FeatureFamily.HYBRID, f"{last.value}:{total % 2}"))

    return keys
