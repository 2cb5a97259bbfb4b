import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Repo root is always the parent of /backend (i.e., civicsense/)
repo_root = Path(__file__).resolve().parent.parent

# Load local environment variables (do NOT commit secrets). A missing .env is fine.
load_dotenv(repo_root / ".env", override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    app_name: str = "CivicSense Analytics"
    env: str = os.getenv("APP_ENV", os.getenv("ENV", "local"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_exp_minutes: int = int(os.getenv("JWT_EXP_MINUTES", "480"))

    # Local demo only: every request resolves to an admin principal.
    disable_auth: bool = _flag("DISABLE_AUTH", "false")

    cors_origins: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./civicsense.db")
    recreate_db_on_startup: bool = _flag("RECREATE_DB_ON_STARTUP", "false")

    # Analytics windows
    default_period_days: int = int(os.getenv("DEFAULT_PERIOD_DAYS", "30"))
    max_period_days: int = int(os.getenv("MAX_PERIOD_DAYS", "365"))
    recent_activity_limit: int = int(os.getenv("RECENT_ACTIVITY_LIMIT", "4"))

    # Seeding
    seed_sample_data: bool = _flag("SEED_SAMPLE_DATA", "true")
    sample_csv_path: str = os.getenv("SAMPLE_CSV_PATH", str((repo_root / "data/sample_reports.csv").resolve()))


settings = Settings()
