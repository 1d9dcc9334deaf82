"""
Configuration settings for ingest_ops.

This module defines the Settings dataclass holding every environment-driven
parameter: database location, job-runner mode and endpoints, the live-sync
interval and where per-session operator state is kept.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Configuration for the ingestion console and its collaborators"""

    # Persistent store
    database_url: str = "sqlite:///data/ingest_ops.db"

    # Deployment environment ("production" switches the job runner to cloud mode)
    environment: str = "development"

    # Job runner (Inngest-style event API)
    job_runner_dev: bool = False
    dev_server_url: str = "http://localhost:8288"
    cloud_url: str = "https://inn.gs"
    event_key: str = "local"
    hosted: bool = False  # True on a managed host, False on a developer machine

    # Operator surface
    internal_api_key: Optional[str] = None
    api_url: str = "http://localhost:8000"

    # Live sync
    sync_interval: float = 5.0  # seconds between snapshot polls
    snapshot_limit: int = 50
    session_dir: str = ".ingest_ops/sessions"

    log_dir: str = "logs"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and a .env file if present)."""
        load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            environment=os.getenv("APP_ENV", cls.environment),
            job_runner_dev=_env_flag("JOB_RUNNER_DEV"),
            dev_server_url=os.getenv("JOB_RUNNER_DEV_SERVER_URL", cls.dev_server_url),
            cloud_url=os.getenv("JOB_RUNNER_CLOUD_URL", cls.cloud_url),
            event_key=os.getenv("JOB_RUNNER_EVENT_KEY", cls.event_key),
            hosted=_env_flag("JOB_RUNNER_HOSTED"),
            internal_api_key=os.getenv("INTERNAL_API_KEY") or None,
            api_url=os.getenv("INGEST_API_URL", cls.api_url),
            sync_interval=float(os.getenv("SYNC_INTERVAL_SECONDS", cls.sync_interval)),
            snapshot_limit=int(os.getenv("SNAPSHOT_LIMIT", cls.snapshot_limit)),
            session_dir=os.getenv("SESSION_DIR", cls.session_dir),
            log_dir=os.getenv("LOG_DIR", cls.log_dir),
        )

    @property
    def job_runner_mode(self) -> str:
        """``dev`` when the local dev server is expected, ``cloud`` otherwise."""
        if self.job_runner_dev or self.environment != "production":
            return "dev"
        return "cloud"

    @property
    def job_runner_base_url(self) -> str:
        if self.job_runner_mode == "dev":
            return self.dev_server_url.rstrip("/")
        return self.cloud_url.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    return Settings.from_env()
