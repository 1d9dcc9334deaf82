"""
One-shot health probe for the job runner.

Operators use it to explain "stuck" requests: a request that stays queued is
usually a runner in the wrong mode (cloud mode on a developer machine) or a
local dev server that is not running. The probe reads only, never retries and
never raises; a failed probe is reported as a degraded JobRunnerHealth.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional

import httpx

from ingest_ops.config import Settings, get_settings
from ingest_ops.logger import setup_logging


logger = setup_logging(logger_name="jobs", log_file="logs/jobs.log")

PROBE_TIMEOUT_SECONDS = 2.0

CLOUD_MODE_ON_LOCALHOST = "cloud-mode-on-localhost"
DEV_SERVER_UNREACHABLE = "dev-server-unreachable"


@dataclass
class JobRunnerHealth:
    mode: str
    base_url: str
    dev_server_reachable: bool = False
    error: Optional[str] = None
    is_localhost: bool = True
    issues: list[str] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict:
        data = asdict(self)
        data["healthy"] = self.healthy
        return data


def _probe_dev_server(url: str, client: Optional[httpx.Client]) -> tuple[bool, Optional[str]]:
    owns_client = client is None
    client = client or httpx.Client(timeout=PROBE_TIMEOUT_SECONDS)
    try:
        response = client.get(f"{url}/health", timeout=PROBE_TIMEOUT_SECONDS)
        if response.status_code >= 400:
            return False, f"Dev server responded with status {response.status_code}"
        return True, None
    except httpx.TimeoutException:
        return False, "Dev server timeout (not responding)"
    except httpx.HTTPError as e:
        return False, str(e) or "Failed to connect to dev server"
    finally:
        if owns_client:
            client.close()


def probe_job_runner(
    settings: Optional[Settings] = None, client: Optional[httpx.Client] = None
) -> JobRunnerHealth:
    """
    Report the job runner's mode and reachability.

    Args:
        settings: Configuration to inspect (defaults to process settings).
        client: Optional httpx client used for the dev-server request.

    Returns:
        JobRunnerHealth with ``issues`` naming any detected misconfiguration.
    """
    settings = settings or get_settings()
    mode = settings.job_runner_mode
    health = JobRunnerHealth(
        mode=mode,
        base_url=settings.job_runner_base_url,
        is_localhost=not settings.hosted,
    )

    try:
        if mode == "dev":
            reachable, error = _probe_dev_server(settings.job_runner_base_url, client)
            health.dev_server_reachable = reachable
            health.error = error
            if not reachable:
                health.issues.append(DEV_SERVER_UNREACHABLE)
        elif health.is_localhost:
            health.issues.append(CLOUD_MODE_ON_LOCALHOST)
    except Exception as e:
        logger.warning(f"Job runner health probe failed unexpectedly: {e}")
        health.error = str(e) or type(e).__name__
        if DEV_SERVER_UNREACHABLE not in health.issues and mode == "dev":
            health.issues.append(DEV_SERVER_UNREACHABLE)

    logger.info(
        f"Job runner probe: mode={health.mode} reachable={health.dev_server_reachable} "
        f"issues={health.issues}"
    )
    return health
