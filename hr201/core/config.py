import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Config(BaseModel):
    app_name: str = "HR201 Leave & Travel Engine"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./hr201.db")

    # Enterprise Architecture
    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"
    # Set by the upstream auth gateway once the session is verified
    identity_header: str = "X-User-Id"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    # Scalability & Performance
    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

    # Leave policy
    # When false, cancelling an Approved leave keeps the deduction and HR re-credits by hand.
    restore_credit_on_cancel: bool = os.getenv("RESTORE_CREDIT_ON_CANCEL", "true").lower() == "true"
    seed_defaults: bool = os.getenv("SEED_DEFAULTS", "true").lower() == "true"

    @property
    def rate_limit_enabled(self) -> bool:
        return self.environment != "testing"


settings = Config()

_logger = logging.getLogger(__name__)
if settings.environment == "production" and settings.database_url.startswith("sqlite"):
    _logger.warning("⚠ Running production on SQLite: row locks are not enforced, use PostgreSQL.")
