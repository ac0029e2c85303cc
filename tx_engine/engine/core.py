import logging
import threading
from dataclasses import dataclass
from typing import Callable

from tx_engine.config import Settings, settings as default_settings
from tx_engine.core.history import Label, RollingHistory, RoundOutcome
from tx_engine.engine.learning import learn
from tx_engine.engine.predictor import Prediction, predict
from tx_engine.engine.store import StatsStore

logger = logging.getLogger(__name__)

Notify = Callable[[str, dict], None]


@dataclass(frozen=True)
class RoundSummary:
    sequence_id: int
    total: int
    outcome: Label
    dice: tuple[int, int, int]

    def as_dict(self) -> dict:
        return {'sequence_id': self.sequence_id, 'sum': self.total, 'outcome': self.outcome.value}


class PatternEngine:
    """One engine instance: its own rolling history, last sum and round counter.

    ``_lock`` guards the in-process state only; store I/O runs outside it.
    """

    def __init__(self, store: StatsStore, config: Settings | None = None, notify: Notify | None = None):
        self.store = store
        self.config = config or default_settings
        self.notify = notify
        self.history = RollingHistory(cap=self.config.history_cap)
        self.last_sum = 0
        self.sequence_id = 0
        self._lock = threading.Lock()

    def current_snapshot(self) -> tuple[tuple[RoundOutcome, ...], int]:
        with self._lock:
            return self.history.snapshot(), self.last_sum

    def record_outcome(self, outcome: RoundOutcome) -> tuple[tuple[RoundOutcome, ...], int]:
        """Append a round; returns the history as it was before, and the new sequence id."""
        with self._lock:
            before = self.history.snapshot()
            self.history.record(outcome)
            self.last_sum = outcome.total
            self.sequence_id += 1
            return before, self.sequence_id

    def record_round(self, d1: int, d2: int, d3: int) -> RoundSummary:
        outcome = RoundOutcome.from_dice(d1, d2, d3)
        before, seq = self.record_outcome(outcome)
        written = learn(self.store, before, outcome.total, outcome.label, dice=(d1, d2, d3))
        summary = RoundSummary(seq, outcome.total, outcome.label, (d1, d2, d3))
        logger.info("round #%d: %d-%d-%d sum=%d %s (%d keys learned)",
                    seq, d1, d2, d3, outcome.total, outcome.label.value, written)
        self._emit("round", summary.as_dict())
        return summary

    def request_prediction(self) -> Prediction:
        rounds, last_sum = self.current_snapshot()
        pred = predict(self.store, rounds, last_sum,
                       min_samples=self.config.min_samples,
                       risk_confidence=self.config.risk_confidence,
                       risk_limit=self.config.risk_limit)
        logger.info("prediction: %s %.3f (%s)", pred.pick.value, pred.confidence, pred.mode.value)
        self._emit("predict", pred.as_dict())
        return pred

    def _emit(self, event: str, data: dict):
        if self.notify is None:
            return
        try:
            self.notify(event, data)
        except Exception:
            logger.exception("notify failed for %s event", event)
