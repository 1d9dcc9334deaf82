"""
Job-runner collaborator.

The job runner executes ingestion and report work out of band. ingest_ops
only ever sends it events and keeps the event id it hands back as the live
job reference; the runner itself advances ingest requests through the
pipeline stages (see ingest_ops.lifecycle.progress).
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ingest_ops.config import Settings, get_settings
from ingest_ops.logger import setup_logging, log_function


logger = setup_logging(logger_name="jobs", log_file="logs/jobs.log")

EPISODE_SUBMITTED_EVENT = "episode/submitted"


class JobRunnerError(Exception):
    """The job runner refused the event or could not be reached."""


class JobRunner(ABC):
    """
    Abstract job-runner interface.

    Implementations deliver named events and return the ids the runner
    assigned to them.
    """

    @abstractmethod
    def send_event(self, name: str, data: dict[str, Any]) -> list[str]:
        """Deliver one event.

        Args:
            name: Event name (e.g. "episode/submitted").
            data: JSON-serializable payload.

        Returns:
            list[str]: Ids assigned by the runner (possibly empty).

        Raises:
            JobRunnerError: If the event was not accepted.
        """

    def trigger(self, request_id: str, url: str) -> str:
        """Ask the runner to process one ingest request.

        Returns:
            str: The job reference for this run.

        Raises:
            JobRunnerError: If the event was refused or no id came back.
        """
        ids = self.send_event(
            EPISODE_SUBMITTED_EVENT, {"requestId": request_id, "url": url}
        )
        if not ids:
            raise JobRunnerError(f"Job runner returned no event id for request {request_id}")
        return ids[0]


class EventApiJobRunner(JobRunner):
    """
    Client for an Inngest-style event API.

    Events are POSTed to ``<base_url>/e/<event_key>`` and the response body is
    expected to look like ``{"ids": ["01H..."], "status": 200}``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.job_runner_base_url
        self._client = client or httpx.Client(timeout=timeout)
        self.logger = logging.getLogger("jobs")

    @property
    def event_url(self) -> str:
        return f"{self.base_url}/e/{self.settings.event_key}"

    @log_function(logger_name="jobs", log_args=True, log_result=True)
    def send_event(self, name: str, data: dict[str, Any]) -> list[str]:
        try:
            response = self._client.post(self.event_url, json={"name": name, "data": data})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise JobRunnerError(
                f"Job runner rejected event '{name}': HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise JobRunnerError(f"Job runner unreachable at {self.base_url}: {e}") from e
        except ValueError as e:
            raise JobRunnerError(f"Job runner returned invalid JSON for '{name}'") from e

        ids = payload.get("ids") or []
        self.logger.info(f"Event '{name}' accepted with ids {ids}")
        return [str(i) for i in ids if i]

    def close(self) -> None:
        self._client.close()
