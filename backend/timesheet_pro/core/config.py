"""
Sync engine configuration using Pydantic BaseSettings.
Loads environment variables and provides typed configuration.
"""

from pydantic_settings import BaseSettings
from typing import Literal, Optional


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""
    
    # Project metadata
    PROJECT_NAME: str = "Timesheet Pro Sync Engine"
    VERSION: str = "0.1.0"
    
    # Remote store
    API_BASE_URL: str = "http://localhost:3001/api"
    HTTP_TIMEOUT_SECONDS: Optional[float] = None
    HTTP_MAX_RETRIES: int = 1
    HTTP_RETRY_DELAY: float = 0.5
    
    # Convergence
    NOTIFICATION_POLL_INTERVAL_SECONDS: float = 1.0
    TOAST_TTL_SECONDS: float = 5.0
    
    # "optimistic" commits the whole desired collection even when some remote
    # operations failed; "applied_only" drops the items whose operation failed.
    RECONCILE_COMMIT_POLICY: Literal["optimistic", "applied_only"] = "optimistic"
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
