from fastapi import APIRouter, Depends, HTTPException, Header, Request
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session
from tx_engine.db.base import get_session
from tx_engine.api.schemas import IngestIn, IngestOut, PredictOut, StatItem, PredictionItem, SummaryOut
from tx_engine.services import ingest_round, request_prediction, feed_dispatcher, get_stats, get_history, get_summary
from tx_engine.config import settings
from tx_engine.feed.packets import TokenExpired

router = APIRouter()


def _auth(api_key_header: str | None = Header(default=None, alias="X-API-Key")):
    if settings.api_key and api_key_header != settings.api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")

@router.post('/ingest', response_model=IngestOut)
def ingest(data: IngestIn, session: Session = Depends(get_session), ok=Depends(_auth)):
    r, summary, resolved = ingest_round(session, data.d1, data.d2, data.d3, source=data.source)
    return {
        'stored_round': {
            'id': r.id, 'sequence_id': summary.sequence_id, 'd1': r.d1, 'd2': r.d2, 'd3': r.d3,
            'total': r.total, 'label': r.label,
        },
        'resolved_prediction_id': resolved.id if resolved else None,
        'resolved_correct': resolved.correct if resolved else None,
    }

@router.post('/predict', response_model=PredictOut)
def predict(session: Session = Depends(get_session), ok=Depends(_auth)):
    return request_prediction(session)

@router.post('/feed')
async def feed(request: Request, session: Session = Depends(get_session), ok=Depends(_auth)):
    """Forwarded raw frame from the upstream game socket."""
    raw = await request.body()
    result = await run_in_threadpool(feed_dispatcher(session).handle, raw)
    if result is None:
        return {'handled': False}
    if isinstance(result, TokenExpired):
        return {'handled': True, 'token_expired': True}
    if isinstance(result, dict):
        return {'handled': True, 'prediction': result}
    r, summary, _ = result
    return {'handled': True, 'round': summary.as_dict()}

@router.get('/stats', response_model=list[StatItem])
def stats(family: str | None = None, value: str | None = None, limit: int = 100,
          session: Session = Depends(get_session)):
    try:
        return get_stats(session, family=family, value=value, limit=limit)
    except ValueError:
        raise HTTPException(400, detail=f"unknown feature family: {family}")

@router.get('/history', response_model=list[PredictionItem])
def prediction_history(limit: int = 50, session: Session = Depends(get_session)):
    return get_history(session, limit=limit)

@router.get('/summary', response_model=SummaryOut)
def summary(session: Session = Depends(get_session)):
    return get_summary(session)
