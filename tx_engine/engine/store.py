"""
Statistics store interface
==========================

The engine keeps one PatternStat row per feature key and only ever touches
those rows through two calls:

- ``fetch(key)``: the current row, or None when the key was never seen.
- ``upsert(key, fn)``: read-modify-write of a single row. ``fn`` receives the
  current row (or None) and returns the row to persist.

Implementations must make ``upsert`` atomic per key, so two learning passes
touching the same key cannot lose an update. Nothing is promised across keys.
Any I/O failure is raised as StoreUnavailable.
"""

import logging
import threading
from collections import defaultdict
from typing import Callable, Protocol, runtime_checkable

from tx_engine.core.features import FeatureKey
from tx_engine.db.models import PatternStat

logger = logging.getLogger(__name__)

Transition = Callable[[PatternStat | None], PatternStat]


class StoreUnavailable(Exception):
    """The backing store could not serve a fetch or upsert."""

    def __init__(self, key: FeatureKey, reason: str = ""):
        self.key = key
        self.reason = reason
        super().__init__(f"store unavailable for {key}: {reason}" if reason else f"store unavailable for {key}")


@runtime_checkable
class StatsStore(Protocol):
    def fetch(self, key: FeatureKey) -> PatternStat | None:
        ...

    def upsert(self, key: FeatureKey, fn: Transition) -> PatternStat:
        ...


def copy_stat(stat: PatternStat) -> PatternStat:
    return PatternStat(
        id=stat.id, family=stat.family, value=stat.value, total=stat.total,
        win_xiu=stat.win_xiu, win_tai=stat.win_tai, weight=stat.weight,
        power=stat.power, last_update=stat.last_update,
    )


class MemoryStatsStore:
    """Dict-backed store for tests and single-process runs without a database."""

    def __init__(self):
        self._rows: dict[tuple[str, str], PatternStat] = {}
        self._locks: defaultdict[tuple[str, str], threading.Lock] = defaultdict(threading.Lock)
        self._guard = threading.Lock()

    @staticmethod
    def _id(key: FeatureKey) -> tuple[str, str]:
        return key.family.value, key.value

    def _lock_for(self, ident: tuple[str, str]) -> threading.Lock:
        with self._guard:
            return self._locks[ident]

    def fetch(self, key: FeatureKey) -> PatternStat | None:
        row = self._rows.get(self._id(key))
        # copies: rows only change through upsert
        return copy_stat(row) if row is not None else None

    def upsert(self, key: FeatureKey, fn: Transition) -> PatternStat:
        ident = self._id(key)
        with self._lock_for(ident):
            current = self._rows.get(ident)
            new = fn(copy_stat(current) if current is not None else None)
            new.family, new.value = ident
            self._rows[ident] = new
            return copy_stat(new)

    def put(self, key: FeatureKey, stat: PatternStat):
        """Seed a row directly, bypassing learning."""
        stat.family, stat.value = self._id(key)
        self._rows[self._id(key)] = stat

    def __len__(self) -> int:
        return len(self._rows)
