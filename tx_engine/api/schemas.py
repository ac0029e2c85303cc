from pydantic import BaseModel, Field
from typing import Optional


class IngestIn(BaseModel):
    d1: int = Field(ge=1, le=6)
    d2: int = Field(ge=1, le=6)
    d3: int = Field(ge=1, le=6)
    source: str = "api"


class RoundOut(BaseModel):
    id: int
    sequence_id: int
    d1: int
    d2: int
    d3: int
    total: int
    label: str


class IngestOut(BaseModel):
    stored_round: RoundOut
    resolved_prediction_id: Optional[int] = None
    resolved_correct: Optional[bool] = None


class PredictOut(BaseModel):
    prediction_id: int
    pick: str
    confidence: float
    mode: str


class StatItem(BaseModel):
    family: str
    value: str
    total: int
    win_xiu: int
    win_tai: int
    weight: float
    power: float
    last_update: str


class PredictionItem(BaseModel):
    id: int
    pick: str
    confidence: float
    mode: str
    actual_label: str | None
    correct: bool | None
    ts: str
    resolved_ts: str | None


class SummaryOut(BaseModel):
    wins: int
    losses: int
    total: int
    winrate: float
