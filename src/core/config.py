"""Configuration models and YAML loader for the job acquisition engine."""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

DatePosted = Literal["any-time", "past-24-hours", "past-week", "past-month"]
ExperienceLevel = Literal[
    "internship", "entry-level", "associate", "mid-senior", "director", "executive",
]
JobType = Literal[
    "full-time", "part-time", "contract", "temporary", "volunteer", "internship", "other",
]
RemoteType = Literal["on-site", "remote", "hybrid"]


class SearchFilters(BaseModel):
    """Structured search filters. Immutable once handed to a search."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    keywords: str | None = None
    location: str | None = None
    date_posted: DatePosted = Field(default="any-time", alias="datePosted")
    experience_level: tuple[ExperienceLevel, ...] = Field(default=(), alias="experienceLevel")
    job_type: tuple[JobType, ...] = Field(default=(), alias="jobType")
    remote: tuple[RemoteType, ...] = ()


class LinkedInCredentials(BaseModel):
    """Login identifier and secret for the platform account."""

    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "LinkedIn email and password are required"
            raise ValueError(msg)
        return v.strip()


class GmailConfig(BaseModel):
    """OAuth2 credentials for reading verification codes from Gmail."""

    client_id: str
    client_secret: str
    refresh_token: str
    access_token: str = ""
    token_uri: str = "https://oauth2.googleapis.com/token"
    query: str = 'from:security-noreply@linkedin.com subject:"verification code"'

    @field_validator("client_id", "client_secret", "refresh_token")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "Gmail client_id, client_secret and refresh_token are required"
            raise ValueError(msg)
        return v.strip()


class BrowserConfig(BaseModel):
    """Browser session configuration."""

    headless: bool = False
    timeout_ms: int = Field(default=30000, ge=1000)
    session_path: str = "sessions/linkedin-session.json"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )


class TimingConfig(BaseModel):
    """Settle intervals and upper bounds for every suspension point (seconds)."""

    login_settle_s: float = Field(default=3.0, ge=0.0)
    page_settle_s: float = Field(default=3.0, ge=0.0)
    card_settle_s: float = Field(default=1.0, ge=0.0)
    detail_settle_s: float = Field(default=3.0, ge=0.0)
    detail_wait_s: float = Field(default=3.0, gt=0.0)
    apply_capture_s: float = Field(default=3.0, gt=0.0)
    challenge_timeout_s: float = Field(default=120.0, gt=0.0)
    code_provider_timeout_s: float = Field(default=60.0, gt=0.0)
    org_fetch_timeout_s: float = Field(default=30.0, gt=0.0)
    org_settle_s: float = Field(default=2.0, ge=0.0)
    drain_timeout_s: float = Field(default=300.0, gt=0.0)


class Settings(BaseModel):
    """Top-level settings loaded from YAML (and the environment)."""

    linkedin: LinkedInCredentials
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    gmail: GmailConfig | None = None
    timing: TimingConfig = Field(default_factory=TimingConfig)
    silent: bool = False

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file, filling gaps from the environment."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(_apply_env(raw))

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings purely from environment variables."""
        return cls.model_validate(_apply_env({}))


def _apply_env(raw: dict[str, Any]) -> dict[str, Any]:
    """Fill credentials and headless flag from the environment when absent."""
    linkedin = dict(raw.get("linkedin") or {})
    linkedin.setdefault("email", os.environ.get("LINKEDIN_EMAIL", ""))
    linkedin.setdefault("password", os.environ.get("LINKEDIN_PASSWORD", ""))

    browser = dict(raw.get("browser") or {})
    if "headless" not in browser and "HEADLESS" in os.environ:
        browser["headless"] = os.environ["HEADLESS"].lower() == "true"
    if "session_path" not in browser and "SESSION_FILE" in os.environ:
        browser["session_path"] = os.environ["SESSION_FILE"]

    return {**raw, "linkedin": linkedin, "browser": browser}
