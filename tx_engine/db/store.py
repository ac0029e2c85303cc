import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from tx_engine.core.features import FeatureKey
from tx_engine.db.crud import get_stat
from tx_engine.db.models import PatternStat
from tx_engine.engine.store import StoreUnavailable, Transition, copy_stat

logger = logging.getLogger(__name__)


class SqlStatsStore:
    """PatternStat rows in the ``pattern_stat`` table, one transaction per upsert."""

    def __init__(self, engine, insert_retries: int = 1):
        self.engine = engine
        self.insert_retries = insert_retries

    def fetch(self, key: FeatureKey) -> PatternStat | None:
        try:
            with Session(self.engine) as session:
                row = get_stat(session, key.family.value, key.value)
                return copy_stat(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreUnavailable(key, str(e)) from e

    def upsert(self, key: FeatureKey, fn: Transition) -> PatternStat:
        attempt = 0
        while True:
            try:
                return self._upsert_once(key, fn)
            except IntegrityError as e:
                # another writer created the row first; its row now exists, so re-read and update
                if attempt >= self.insert_retries:
                    raise StoreUnavailable(key, str(e)) from e
                attempt += 1
                logger.debug("insert race on %s, retrying", key)
            except SQLAlchemyError as e:
                raise StoreUnavailable(key, str(e)) from e

    def _upsert_once(self, key: FeatureKey, fn: Transition) -> PatternStat:
        with Session(self.engine) as session:
            row = get_stat(session, key.family.value, key.value, for_update=True)
            new = fn(copy_stat(row) if row is not None else None)
            if row is None:
                row = PatternStat(family=key.family.value, value=key.value)
            row.total = new.total
            row.win_xiu = new.win_xiu
            row.win_tai = new.win_tai
            row.weight = new.weight
            row.power = new.power
            row.last_update = new.last_update
            session.add(row)
            session.commit()
            session.refresh(row)
            return copy_stat(row)
