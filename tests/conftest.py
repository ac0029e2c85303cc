import os

# cấu hình trước khi import tx_engine: DB trong bộ nhớ, không API key
os.environ["DB_DSN"] = "sqlite://"
os.environ.pop("API_KEY", None)

import pytest

from tx_engine.core.history import RoundOutcome
from tx_engine.engine.store import MemoryStatsStore, StoreUnavailable


@pytest.fixture
def store():
    return MemoryStatsStore()


def rounds(*totals):
    return [RoundOutcome.from_total(t) for t in totals]


class FlakyStore:
    """Wraps a store and fails every call for one feature family."""

    def __init__(self, inner, broken):
        self.inner = inner
        self.broken = broken

    def fetch(self, key):
        if key.family == self.broken:
            raise StoreUnavailable(key, "down")
        return self.inner.fetch(key)

    def upsert(self, key, fn):
        if key.family == self.broken:
            raise StoreUnavailable(key, "down")
        return self.inner.upsert(key, fn)
