"""
Job-runner collaborator and its health probe.

- runner.py: JobRunner interface and the EventApiJobRunner HTTP client
- health.py: probe_job_runner() diagnostic for stuck requests
"""

from .runner import (
    EPISODE_SUBMITTED_EVENT,
    EventApiJobRunner,
    JobRunner,
    JobRunnerError,
)
from .health import (
    CLOUD_MODE_ON_LOCALHOST,
    DEV_SERVER_UNREACHABLE,
    JobRunnerHealth,
    probe_job_runner,
)

__all__ = [
    "EPISODE_SUBMITTED_EVENT",
    "EventApiJobRunner",
    "JobRunner",
    "JobRunnerError",
    "CLOUD_MODE_ON_LOCALHOST",
    "DEV_SERVER_UNREACHABLE",
    "JobRunnerHealth",
    "probe_job_runner",
]
