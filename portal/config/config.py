# portal/config/config.py
from datetime import date
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_DATA_DIR = _PROJECT_ROOT / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore",
    )

    # environment
    env: str = Field("dev", alias="ENV")
    data_dir: Path = Field(_DEFAULT_DATA_DIR, alias="DATA_DIR")

    timezone_name: str = Field("UTC", alias="TIMEZONE")

    # database
    db_url: str | None = Field(None, alias="DATABASE_URL")
    db_filename: str = Field("portal.db", alias="DB_FILENAME")
    db_echo: bool = Field(False, alias="DB_ECHO")

    # logging; empty means DEBUG in dev, INFO elsewhere
    log_level: str | None = Field(None, alias="LOG_LEVEL")
    log_file: Path | None = Field(None, alias="LOG_FILE")

    # ───────────────── Applications ────────────────────────────────────
    # How many departments one applicant may pick.
    max_departments: int = Field(2, alias="MAX_DEPARTMENTS")
    # Admin listing page size.
    page_size: int = Field(10, alias="PAGE_SIZE")

    # ───────────────── Submission window ───────────────────────────────
    # Hard switch: nobody can submit while the portal is closed.
    application_closed: bool = Field(False, alias="APPLICATION_CLOSED")
    # Last day (inclusive, in settings.timezone) for final submission.
    application_deadline: date | None = Field(None, alias="APPLICATION_DEADLINE")
    allow_late_submissions: bool = Field(False, alias="ALLOW_LATE_SUBMISSIONS")

    @model_validator(mode="before")
    def _preprocess(cls, values: dict[str, Any]) -> dict[str, Any]:
        raw = values.get("data_dir", values.get("DATA_DIR", _DEFAULT_DATA_DIR))
        values["data_dir"] = Path(raw).expanduser().resolve()
        values.pop("DATA_DIR", None)
        return values

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)

    @property
    def database_url(self) -> str:
        return self.db_url or f"sqlite:///{self.data_dir / self.db_filename}"


settings = Settings()
