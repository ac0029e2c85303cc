import random
import threading

import pytest

from tx_engine.core.features import FeatureFamily, FeatureKey
from tx_engine.core.history import Label
from tx_engine.db.models import PatternStat
from tx_engine.engine.learning import advance, learn

from conftest import FlakyStore, rounds

def test_first_observation_creates_row():
    s = advance(None, Label.XIU)
    assert (s.total, s.win_xiu, s.win_tai, s.weight, s.power) == (1, 1, 0, 1.0, 1.0)

def test_hit_then_miss():
    s = advance(None, Label.TAI)
    s = advance(s, Label.TAI)  # leader TAI agrees
    assert s.weight == pytest.approx(1.4) and s.power == pytest.approx(1.29)
    s = advance(s, Label.XIU)  # 0 >= 2 is false
    assert s.weight == pytest.approx(1.4 * 0.9 - 0.25)
    assert s.power == pytest.approx(1.29 * 0.94 - 0.2)
    assert (s.total, s.win_tai, s.win_xiu) == (3, 2, 1)

def test_tie_counts_as_correct():
    s = advance(advance(None, Label.TAI), Label.XIU)  # 1-1 after a miss
    w = s.weight
    s = advance(s, Label.XIU)
    assert s.weight == pytest.approx(w * 0.9 + 0.5)

def test_invariants_hold_over_random_sequences():
    rng = random.Random(7)
    s = None
    for _ in range(500):
        s = advance(s, rng.choice([Label.TAI, Label.XIU, Label.XIU]))
        assert s.total == s.win_tai + s.win_xiu
        assert s.weight >= 0.1 and s.power >= 0.1

def test_floor():
    s = PatternStat(total=100, win_tai=100, win_xiu=0, weight=1.0, power=1.0)
    for _ in range(40):
        s = advance(s, Label.XIU)
    assert s.weight == pytest.approx(0.1) and s.power == pytest.approx(0.1)
    assert s.total == 140 and s.win_xiu == 40

def test_learn_writes_every_key(store):
    n = learn(store, rounds(4, 12), 12, Label.TAI, dice=(6, 4, 2))
    assert n == 6 and len(store) == 6
    stat = store.fetch(FeatureKey(FeatureFamily.STREAK, "TAI:1"))
    assert stat.total == 1 and stat.win_tai == 1

def test_learn_continues_past_store_failure(store):
    flaky = FlakyStore(store, FeatureFamily.RANGE)
    assert learn(flaky, [], 9, Label.XIU, dice=(1, 3, 5)) == 3
    assert store.fetch(FeatureKey(FeatureFamily.RANGE, "LOW")) is None
    assert store.fetch(FeatureKey(FeatureFamily.DICE, "1-3-5")).total == 1

def test_concurrent_upserts_on_one_key(store):
    key = FeatureKey(FeatureFamily.PARITY, "1")
    n_threads, n_calls = 8, 200

    def worker(label):
        for _ in range(n_calls):
            store.upsert(key, lambda stat: advance(stat, label))

    threads = [threading.Thread(target=worker, args=(Label.TAI if i % 2 else Label.XIU,))
               for i in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    stat = store.fetch(key)
    assert stat.total == n_threads * n_calls == stat.win_tai + stat.win_xiu
    assert stat.win_tai == stat.win_xiu == n_threads * n_calls // 2
