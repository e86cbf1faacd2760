from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Application
    APP_NAME: str = "MfgFlow"
    APP_PORT: int = 9300
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SECRET_KEY: str = "mfgflow-secret-key-change-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours
    
    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "mfgflow"
    POSTGRES_PORT: int = 5432
    DATABASE_URI: Optional[str] = None  # Full URL override, e.g. sqlite:///./mfgflow.db
    
    # Inventory behaviour
    COMPLETION_MODE: str = "legacy"  # legacy | atomic
    MO_NUMBER_STRATEGY: str = "sequence"  # sequence | count
    LOW_STOCK_THRESHOLD: int = 10
    
    # Stock audit job
    STOCK_AUDIT_ENABLED: bool = False
    STOCK_AUDIT_INTERVAL_MINUTES: int = 60
    
    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URI:
            return self.DATABASE_URI
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
