from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from tx_engine.core.validation import is_tai


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PatternStat(SQLModel, table=True):
    __tablename__ = "pattern_stat"
    __table_args__ = (UniqueConstraint("family", "value", name="uq_pattern_stat_key"),)

    id: int | None = Field(default=None, primary_key=True)
    family: str = Field(index=True)
    value: str
    total: int = 0
    win_xiu: int = 0
    win_tai: int = 0
    weight: float = 1.0
    power: float = 1.0
    last_update: datetime = Field(default_factory=utcnow)


class RoundRecord(SQLModel, table=True):
    __tablename__ = "round"

    id: int | None = Field(default=None, primary_key=True)
    ts: datetime = Field(default_factory=utcnow, index=True)
    sequence_id: int = Field(index=True)
    d1: int
    d2: int
    d3: int
    total: int = 0
    label: str = Field(default="", index=True)  # 'TAI' | 'XIU'
    source: str = "feed"

    def compute(self):
        self.total = self.d1 + self.d2 + self.d3
        self.label = 'TAI' if is_tai(self.total) else 'XIU'


class PredictionRecord(SQLModel, table=True):
    __tablename__ = "prediction"

    id: int | None = Field(default=None, primary_key=True)
    pick: str  # 'TAI' | 'XIU' | 'SKIP'
    confidence: float
    mode: str
    ts: datetime = Field(default_factory=utcnow, index=True)
    # resolution, filled when the next round arrives
    round_id: int | None = None
    actual_label: str | None = None
    correct: bool | None = None
    resolved_ts: datetime | None = None
