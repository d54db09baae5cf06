from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "logs/triplecheck.log"
    DATABASE_URL: str = "sqlite+aiosqlite:///./triplecheck.db"

    # Narrative completion service (Google Generative Language API)
    GOOGLE_API_KEY: Optional[str] = None
    NARRATIVE_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    NARRATIVE_MODEL: str = "gemini-1.5-pro"
    NARRATIVE_TIMEOUT_SECONDS: float = 20.0
    NARRATIVE_DEADLINE_SECONDS: float = 45.0
    NARRATIVE_MAX_ATTEMPTS: int = 2
    NARRATIVE_CONCURRENCY: int = 5

    # Model store
    MODEL_STORE_DIR: str = "./models"
    MODEL_STORE_RETAIN: int = 5
    MODEL_VERSION: str = "1.0.0"

    # Training
    TRAINING_SEED: Optional[int] = None
    MIN_TRAINING_EXAMPLES: int = 10
    TRAIN_SPLIT: float = 0.8
    FRAUD_RISK_THRESHOLD: float = 70.0


settings = Settings()
