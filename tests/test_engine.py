import pytest

from tx_engine.config import Settings
from tx_engine.core.features import FeatureFamily, FeatureKey
from tx_engine.core.history import Label
from tx_engine.engine.core import PatternEngine
from tx_engine.engine.predictor import Mode, Pick

def test_round_updates_state_and_emits(store):
    events = []
    eng = PatternEngine(store, notify=lambda e, d: events.append((e, d)))
    s = eng.record_round(6, 4, 1)
    assert (s.sequence_id, s.total, s.outcome) == (1, 11, Label.TAI)
    assert eng.last_sum == 11 and len(eng.history) == 1
    assert events == [("round", {'sequence_id': 1, 'sum': 11, 'outcome': 'TAI'})]

def test_learning_sees_history_before_round(store):
    eng = PatternEngine(store)
    eng.record_round(6, 6, 6)
    # first round: no history yet, so no streak/hybrid keys
    assert len(store) == 4
    eng.record_round(6, 6, 6)
    assert len(store) == 6
    assert store.fetch(FeatureKey(FeatureFamily.STREAK, "TAI:1")).total == 1
    assert store.fetch(FeatureKey(FeatureFamily.SUM, "18")).win_tai == 2

def test_history_cap_from_settings(store):
    eng = PatternEngine(store, Settings(history_cap=5))
    for _ in range(8):
        eng.record_round(1, 2, 3)
    rounds, last = eng.current_snapshot()
    assert len(rounds) == 5 and last == 6 and eng.sequence_id == 8

def test_predict_after_repeated_rounds(store):
    events = []
    eng = PatternEngine(store, notify=lambda e, d: events.append((e, d)))
    assert eng.request_prediction().mode == Mode.COLD
    for _ in range(5):
        eng.record_round(6, 6, 6)
    p = eng.request_prediction()
    assert p.pick == Pick.TAI and p.mode == Mode.NORMAL
    assert p.confidence == pytest.approx(1.0)
    assert events[-1] == ("predict", {'pick': 'TAI', 'confidence': 1.0, 'mode': 'normal'})

def test_engines_are_independent(store):
    a = PatternEngine(store)
    b = PatternEngine(store)
    a.record_round(1, 1, 1)
    assert len(a.history) == 1 and len(b.history) == 0

def test_notify_failure_does_not_break_round(store):
    def boom(event, data):
        raise RuntimeError("dashboard down")
    eng = PatternEngine(store, notify=boom)
    assert eng.record_round(2, 2, 2).total == 6
    assert eng.request_prediction().mode == Mode.COLD
