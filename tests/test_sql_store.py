import pytest

from tx_engine.core.features import FeatureFamily, FeatureKey
from tx_engine.core.history import Label
from tx_engine.db.base import init_db, make_engine
from tx_engine.db.store import SqlStatsStore
from tx_engine.engine.learning import advance, learn
from tx_engine.engine.predictor import Pick, predict
from tx_engine.engine.store import StoreUnavailable
from conftest import rounds

KEY = FeatureKey(FeatureFamily.SUM, "12")

@pytest.fixture
def sql_store():
    engine = make_engine("sqlite://")
    init_db(bind=engine)
    return SqlStatsStore(engine)

def test_fetch_missing(sql_store):
    assert sql_store.fetch(KEY) is None

def test_upsert_creates_then_updates(sql_store):
    sql_store.upsert(KEY, lambda s: advance(s, Label.TAI))
    row = sql_store.upsert(KEY, lambda s: advance(s, Label.TAI))
    assert (row.family, row.value, row.total, row.win_tai) == ("sum", "12", 2, 2)
    got = sql_store.fetch(KEY)
    assert got.total == 2 and got.weight == pytest.approx(1.4)

def test_same_value_different_family(sql_store):
    sql_store.upsert(KEY, lambda s: advance(s, Label.TAI))
    sql_store.upsert(FeatureKey(FeatureFamily.HYBRID, "12"), lambda s: advance(s, Label.XIU))
    assert sql_store.fetch(KEY).win_xiu == 0

def test_learn_and_predict_through_sql(sql_store):
    for _ in range(6):
        learn(sql_store, [], 12, Label.TAI, dice=(6, 4, 2))
    history = rounds(12)
    assert predict(sql_store, history, 12).pick == Pick.TAI

def test_missing_table_is_store_unavailable():
    store = SqlStatsStore(make_engine("sqlite://"))
    with pytest.raises(StoreUnavailable):
        store.fetch(KEY)
    with pytest.raises(StoreUnavailable):
        store.upsert(KEY, lambda s: advance(s, Label.TAI))
    # learning swallows per-key failures
    assert learn(store, [], 12, Label.TAI) == 0
