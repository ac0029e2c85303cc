import logging
from typing import Optional

from sqlmodel import Session

from tx_engine.config import settings
from tx_engine.core.features import FeatureFamily, FeatureKey
from tx_engine.core.history import RoundOutcome
from tx_engine.db.base import engine as db_engine
from tx_engine.db.crud import (
    create_prediction, history, insert_round, latest_rounds, list_stats, resolve_open_predictions, resolved_outcomes,
)
from tx_engine.db.models import RoundRecord
from tx_engine.db.store import SqlStatsStore
from tx_engine.engine.core import Notify, PatternEngine
from tx_engine.feed.packets import FeedDispatcher, TokenExpired

logger = logging.getLogger(__name__)

_engine: Optional[PatternEngine] = None
_notify: Optional[Notify] = None


def configure(notify: Optional[Notify] = None, engine: Optional[PatternEngine] = None):
    """Install the dashboard callback and/or a prebuilt engine (tests)."""
    global _engine, _notify
    _notify = notify
    _engine = engine
    if _engine is not None and notify is not None:
        _engine.notify = notify


def get_engine(session: Session) -> PatternEngine:
    global _engine
    if _engine is None:
        _engine = PatternEngine(SqlStatsStore(db_engine), settings, notify=_notify)
        # khôi phục cửa sổ lịch sử sau khi khởi động lại (không học lại)
        rows = latest_rounds(session, limit=settings.history_cap)
        for row in rows:
            _engine.record_outcome(RoundOutcome.from_total(row.total))
        _engine.sequence_id = rows[-1].sequence_id if rows else 0
        logger.info("engine ready, restored %d rounds", len(rows))
    return _engine


def ingest_round(session: Session, d1: int, d2: int, d3: int, source: str = "api"):
    eng = get_engine(session)
    # lưu ván trước; insert lỗi thì engine chưa bị đụng tới (một luồng ghi duy nhất)
    out = insert_round(session, RoundRecord(sequence_id=eng.sequence_id + 1, d1=d1, d2=d2, d3=d3, source=source))
    summary = eng.record_round(d1, d2, d3)

    resolved = resolve_open_predictions(session, out)
    return out, summary, resolved


def request_prediction(session: Session):
    pred = get_engine(session).request_prediction()
    row = create_prediction(session, pred.pick.value, pred.confidence, pred.mode.value)
    return {'prediction_id': row.id, **pred.as_dict()}


def feed_dispatcher(session: Session) -> FeedDispatcher:
    return FeedDispatcher(
        on_round=lambda d1, d2, d3: ingest_round(session, d1, d2, d3, source="feed"),
        on_predict=lambda: request_prediction(session),
        on_token_expired=TokenExpired,
    )


def get_stats(session: Session, family: str | None = None, value: str | None = None, limit: int = 100):
    eng = get_engine(session)
    if family:
        family = FeatureFamily(family).value  # ValueError on unknown family
    if family and value is not None:
        stat = eng.store.fetch(FeatureKey(FeatureFamily(family), value))
        rows = [stat] if stat is not None else []
    else:
        rows = list_stats(session, family=family, limit=limit)

    def to_dict(s):
        return {
            'family': s.family,
            'value': s.value,
            'total': s.total,
            'win_xiu': s.win_xiu,
            'win_tai': s.win_tai,
            'weight': s.weight,
            'power': s.power,
            'last_update': s.last_update.isoformat(),
        }
    return [to_dict(s) for s in rows]


def get_history(session: Session, limit: int = 50):
    rows = history(session, limit=limit)
    def to_dict(p):
        return {
            'id': p.id,
            'pick': p.pick,
            'confidence': p.confidence,
            'mode': p.mode,
            'actual_label': p.actual_label,
            'correct': p.correct,
            'ts': p.ts.isoformat(),
            'resolved_ts': p.resolved_ts.isoformat() if p.resolved_ts else None,
        }
    return [to_dict(x) for x in rows]


def get_summary(session: Session):
    outcomes = resolved_outcomes(session)
    wins = sum(1 for c in outcomes if c)
    losses = len(outcomes) - wins
    total = wins + losses
    winrate = (wins / total) if total else 0.0
    return {'wins': wins, 'losses': losses, 'total': total, 'winrate': winrate}
