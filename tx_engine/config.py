from pydantic_settings import BaseSettings
import os

class Settings(BaseSettings):
    db_dsn: str = os.getenv("DB_DSN", "sqlite:///./data/tx_engine.db")
    history_cap: int = int(os.getenv("HISTORY_CAP", 200))
    min_samples: int = int(os.getenv("MIN_SAMPLES", 5))
    risk_confidence: float = float(os.getenv("RISK_CONFIDENCE", 0.55))
    risk_limit: int = int(os.getenv("RISK_LIMIT", 3))
    api_key: str | None = os.getenv("API_KEY")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
