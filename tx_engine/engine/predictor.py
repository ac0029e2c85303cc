import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from tx_engine.core.features import NO_DICE, build_keys
from tx_engine.core.history import Label, RoundOutcome
from tx_engine.engine.store import StatsStore, StoreUnavailable

logger = logging.getLogger(__name__)

MIN_SAMPLES = 5
RISK_CONFIDENCE = 0.55
RISK_LIMIT = 3

# Fixed label order for tie-breaks: XIU before TAI.
TIE_ORDER = (Label.XIU, Label.TAI)


class Pick(str, Enum):
    TAI = "TAI"
    XIU = "XIU"
    SKIP = "SKIP"


class Mode(str, Enum):
    COLD = "cold"
    DANGER = "danger"
    NORMAL = "normal"


@dataclass(frozen=True)
class Vote:
    pick: Label
    confidence: float
    score: float


@dataclass(frozen=True)
class Prediction:
    pick: Pick
    confidence: float
    mode: Mode

    def as_dict(self) -> dict:
        return {'pick': self.pick.value, 'confidence': self.confidence, 'mode': self.mode.value}


COLD = Prediction(Pick.XIU, 0.5, Mode.COLD)
DANGER = Prediction(Pick.SKIP, 0.0, Mode.DANGER)


def collect_votes(store: StatsStore, history: Sequence[RoundOutcome], total: int,
                  min_samples: int = MIN_SAMPLES) -> list[Vote]:
    votes = []
    for key in build_keys(history, total, NO_DICE):
        try:
            stat = store.fetch(key)
        except StoreUnavailable as e:
            logger.warning("predict: treating %s as absent (%s)", key, e.reason or e)
            continue
        if stat is None or stat.total < min_samples:
            continue
        rate_xiu = stat.win_xiu / stat.total
        rate_tai = stat.win_tai / stat.total
        pick = Label.TAI if rate_tai >= rate_xiu else Label.XIU
        conf = max(rate_xiu, rate_tai)
        votes.append(Vote(pick, conf, conf * stat.weight * stat.power))
    return votes


def aggregate(votes: Sequence[Vote], risk_confidence: float = RISK_CONFIDENCE,
              risk_limit: int = RISK_LIMIT) -> Prediction:
    if not votes:
        return COLD

    risk = sum(1 for v in votes if v.confidence < risk_confidence)
    if risk >= risk_limit:
        return DANGER

    scores = {label: 0.0 for label in TIE_ORDER}
    for v in votes:
        scores[v.pick] += v.score
    winner = None
    for label in TIE_ORDER:
        if not any(v.pick == label for v in votes):
            continue
        if winner is None or scores[label] > scores[winner]:
            winner = label

    backing = [v.confidence for v in votes if v.pick == winner]
    return Prediction(Pick(winner.value), sum(backing) / len(backing), Mode.NORMAL)


def predict(store: StatsStore, history: Sequence[RoundOutcome], total: int,
            min_samples: int = MIN_SAMPLES, risk_confidence: float = RISK_CONFIDENCE,
            risk_limit: int = RISK_LIMIT) -> Prediction:
    votes = collect_votes(store, history, total, min_samples=min_samples)
    pred = aggregate(votes, risk_confidence=risk_confidence, risk_limit=risk_limit)
    logger.debug("predict: %d votes -> %s", len(votes), pred)
    return pred
