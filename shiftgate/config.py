"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "ShiftGate"
    debug: bool = False

    # Database (postgresql+psycopg for psycopg3; use postgresql:// for psycopg2)
    database_url: str = "postgresql+psycopg://localhost:5432/shiftgate_dev"
    db_connect_timeout: int = 10  # seconds

    # Compliance status: valid_to within this many days of today is "expiring"
    expiry_horizon_days: int = 30

    # Response caps for the matrix endpoints
    top_requirements: int = 50
    top_employees: int = 50
    top_stations: int = 50
    expiring_sample_size: int = 10

    # Setup readiness score → status thresholds
    readiness_green_at: int = 85
    readiness_amber_at: int = 60

    # Applicability: empty rule line/role matches an employee with no line/role.
    # Pending product sign-off; see DESIGN.md.
    treat_empty_rule_as_wildcard: bool = True

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"

        default_user = os.getenv("PGUSER") or os.getenv("USER") or "postgres"
        default_url = (
            f"postgresql+psycopg://{default_user}:"
            f"{os.getenv('PGPASSWORD', '')}@"
            f"{os.getenv('PGHOST', 'localhost')}:"
            f"{os.getenv('PGPORT', '5432')}/"
            f"{os.getenv('PGDATABASE', 'shiftgate_dev')}"
        )
        raw_url = os.getenv("DATABASE_URL", default_url)
        # Ensure psycopg3 driver if URL uses generic postgresql://
        if raw_url.startswith("postgresql://") and not raw_url.startswith("postgresql+psycopg"):
            raw_url = raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
        self.database_url = raw_url
        self.db_connect_timeout = int(os.getenv("DB_CONNECT_TIMEOUT", str(self.db_connect_timeout)))

        self.expiry_horizon_days = int(
            os.getenv("EXPIRY_HORIZON_DAYS", str(self.expiry_horizon_days))
        )

        self.top_requirements = int(os.getenv("TOP_REQUIREMENTS", str(self.top_requirements)))
        self.top_employees = int(os.getenv("TOP_EMPLOYEES", str(self.top_employees)))
        self.top_stations = int(os.getenv("TOP_STATIONS", str(self.top_stations)))
        self.expiring_sample_size = int(
            os.getenv("EXPIRING_SAMPLE_SIZE", str(self.expiring_sample_size))
        )

        self.readiness_green_at = int(
            os.getenv("READINESS_GREEN_AT", str(self.readiness_green_at))
        )
        self.readiness_amber_at = int(
            os.getenv("READINESS_AMBER_AT", str(self.readiness_amber_at))
        )

        self.treat_empty_rule_as_wildcard = _env_bool(
            "TREAT_EMPTY_RULE_AS_WILDCARD", self.treat_empty_rule_as_wildcard
        )
