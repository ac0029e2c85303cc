from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from tx_engine.db.models import PatternStat, PredictionRecord, RoundRecord, utcnow


def get_stat(session: Session, family: str, value: str, for_update: bool = False) -> Optional[PatternStat]:
    stmt = select(PatternStat).where(PatternStat.family == family).where(PatternStat.value == value)
    if for_update:
        # SQLite bỏ qua FOR UPDATE, ghi vẫn tuần tự do khóa cả file
        stmt = stmt.with_for_update()
    return session.exec(stmt).first()


def list_stats(session: Session, family: str | None = None, limit: int = 100) -> list[PatternStat]:
    stmt = select(PatternStat)
    if family:
        stmt = stmt.where(PatternStat.family == family)
    stmt = stmt.order_by(PatternStat.total.desc()).limit(limit)
    return list(session.exec(stmt).all())


def insert_round(session: Session, r: RoundRecord) -> RoundRecord:
    r.compute()
    session.add(r)
    session.commit()
    session.refresh(r)
    return r


def latest_rounds(session: Session, limit: int = 200) -> list[RoundRecord]:
    rows = session.exec(select(RoundRecord).order_by(RoundRecord.id.desc()).limit(limit)).all()
    return list(reversed(rows))


# Prediction helpers


def create_prediction(session: Session, pick: str, confidence: float, mode: str) -> PredictionRecord:
    pred = PredictionRecord(pick=pick, confidence=confidence, mode=mode)
    session.add(pred)
    session.commit()
    session.refresh(pred)
    return pred


def unresolved_predictions(session: Session) -> list[PredictionRecord]:
    return list(session.exec(
        select(PredictionRecord)
        .where(PredictionRecord.round_id.is_(None))
        .order_by(PredictionRecord.id.desc())
    ).all())


def resolve_prediction(session: Session, pred: PredictionRecord, round_obj: RoundRecord,
                       now: datetime | None = None) -> PredictionRecord:
    pred.round_id = round_obj.id
    pred.actual_label = round_obj.label
    # SKIP không tính thắng/thua
    pred.correct = None if pred.pick == 'SKIP' else (pred.pick == round_obj.label)
    pred.resolved_ts = now or utcnow()
    session.add(pred)
    session.commit()
    session.refresh(pred)
    return pred


def history(session: Session, limit: int = 50) -> list[PredictionRecord]:
    return list(session.exec(select(PredictionRecord).order_by(PredictionRecord.id.desc()).limit(limit)).all())


def resolved_outcomes(session: Session) -> list[bool]:
    rows = session.exec(select(PredictionRecord.correct).where(PredictionRecord.correct.is_not(None))).all()
    return [bool(c) for c in rows]


def resolve_open_predictions(session: Session, round_obj: RoundRecord) -> Optional[PredictionRecord]:
    """Score the newest open prediction against ``round_obj``; older open ones are closed unscored."""
    open_preds = unresolved_predictions(session)
    if not open_preds:
        return None
    now = utcnow()
    for stale in open_preds[1:]:
        stale.round_id = round_obj.id
        stale.actual_label = round_obj.label
        stale.correct = None
        stale.resolved_ts = now
        session.add(stale)
    return resolve_prediction(session, open_preds[0], round_obj, now=now)
