import logging
from datetime import datetime
from typing import Sequence

from tx_engine.core.features import NO_DICE, build_keys
from tx_engine.core.history import Label, RoundOutcome
from tx_engine.db.models import PatternStat, utcnow
from tx_engine.engine.store import StatsStore, StoreUnavailable

logger = logging.getLogger(__name__)

FLOOR = 0.1
# weight moves fast (short horizon), power decays slowly (long horizon)
WEIGHT_DECAY, WEIGHT_HIT, WEIGHT_MISS = 0.9, 0.5, -0.25
POWER_DECAY, POWER_HIT, POWER_MISS = 0.94, 0.35, -0.2


def leader_agrees(stat: PatternStat, label: Label) -> bool:
    """Whether the key's majority so far (ties count for both) matches ``label``."""
    if label == Label.TAI:
        return stat.win_tai >= stat.win_xiu
    return stat.win_xiu >= stat.win_tai


def advance(stat: PatternStat | None, label: Label, now: datetime | None = None) -> PatternStat:
    now = now or utcnow()
    tai = 1 if label == Label.TAI else 0
    if stat is None:
        return PatternStat(total=1, win_tai=tai, win_xiu=1 - tai, weight=1.0, power=1.0, last_update=now)

    correct = leader_agrees(stat, label)
    stat.weight = max(FLOOR, stat.weight * WEIGHT_DECAY + (WEIGHT_HIT if correct else WEIGHT_MISS))
    stat.power = max(FLOOR, stat.power * POWER_DECAY + (POWER_HIT if correct else POWER_MISS))
    stat.total += 1
    stat.win_tai += tai
    stat.win_xiu += 1 - tai
    stat.last_update = now
    return stat


def learn(store: StatsStore, history: Sequence[RoundOutcome], total: int, label: Label,
          dice: tuple[int, int, int] = NO_DICE, now: datetime | None = None) -> int:
    """Fold one observed round into every feature key it produces.

    ``history`` is the window as it was before this round was appended.
    Returns the number of keys written; keys whose store call failed are
    logged and skipped.
    """
    now = now or utcnow()
    written = 0
    for key in build_keys(history, total, dice):
        try:
            store.upsert(key, lambda stat: advance(stat, label, now))
        except StoreUnavailable as e:
            logger.warning("learn: skipped %s (%s)", key, e.reason or e)
            continue
        written += 1
    return written
