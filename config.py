import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        csrf_secret: str,
        session_timeout_minutes: int,
        session_warning_minutes: int,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.csrf_secret = csrf_secret
        self.session_timeout_minutes = session_timeout_minutes
        self.session_warning_minutes = session_warning_minutes


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance.db"
    database_url = os.getenv("FINANCE_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINANCE_TIMEZONE", "America/Sao_Paulo")
    csrf_secret = os.getenv(
        "FINANCE_CSRF_SECRET",
        "5d0f3c9a1e8b47e2a6c4b1f09d7e2a3c8b6f4e1d2c9a0b7e5f3d1c8a6b4e2f09",
    )
    session_timeout_minutes = int(os.getenv("FINANCE_SESSION_TIMEOUT_MINUTES", "30"))
    session_warning_minutes = int(os.getenv("FINANCE_SESSION_WARNING_MINUTES", "5"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        csrf_secret=csrf_secret,
        session_timeout_minutes=session_timeout_minutes,
        session_warning_minutes=session_warning_minutes,
    )
