"""
Operator-initiated lifecycle operations on ingest requests.

LifecycleController is the only writer of operator edges (submit, resend,
retry, delete). It validates preconditions against the state machine before
touching the store, and is the only place besides submission that talks to
the job runner.

Two operators acting on the same request at the same time are not
serialized: both may pass the precondition check and both trigger the
runner. The last writer's job reference wins.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError

from ingest_ops.db import (
    IngestRequestRecord,
    IngestRequestStore,
    IngestSource,
    IngestStatus,
)
from ingest_ops.jobs import JobRunner
from ingest_ops.logger import setup_logging, log_function
from .errors import (
    DeletionNotConfirmed,
    DuplicateSubmission,
    RequestNotFound,
    UnsupportedSource,
)
from .sources import detect_source
from .state_machine import (
    LifecycleEvent,
    ensure_resendable,
    ensure_retryable,
    next_status,
)


logger = setup_logging(logger_name="lifecycle", log_file="logs/lifecycle.log")


class LifecycleController:
    """
    Submit, resend, retry and delete ingest requests.

    Args:
        store: Storage collaborator (IngestRequestStore)
        runner: Job-runner collaborator used to start pipeline runs
    """

    def __init__(self, store: IngestRequestStore, runner: JobRunner):
        self.store = store
        self.runner = runner

    def _require(self, request_id: str) -> IngestRequestRecord:
        record = self.store.get(request_id)
        if record is None:
            raise RequestNotFound(request_id)
        return record

    @log_function(logger_name="lifecycle", log_args=True)
    def submit(
        self, url: str, user_id: str, source: Optional[IngestSource] = None
    ) -> IngestRequestRecord:
        """
        Create a QUEUED request for ``url`` and start its pipeline run.

        Raises:
            UnsupportedSource: If the URL is neither YouTube nor a direct audio file.
            DuplicateSubmission: If the URL already has a request.
            JobRunnerError: If the runner refused the event. The request is
                kept QUEUED without a job reference so it can be resent.
        """
        url = url.strip()
        source = source or detect_source(url)
        if source is None:
            raise UnsupportedSource(url)

        existing = self.store.find_by_url(url)
        if existing is not None:
            raise DuplicateSubmission(url, existing.id)

        next_status(None, LifecycleEvent.SUBMIT)
        try:
            record = self.store.create(url=url, user_id=user_id, source=source)
        except IntegrityError as e:
            # Lost a race with a concurrent submission of the same URL
            existing = self.store.find_by_url(url)
            raise DuplicateSubmission(url, existing.id if existing else None) from e

        logger.info(f"Created ingest request {record.id} ({source.value}) for {url}")
        job_reference = self.runner.trigger(record.id, url)
        return self.store.update(record.id, job_reference=job_reference)

    @log_function(logger_name="lifecycle", log_args=True, log_result=True)
    def resend(self, request_id: str) -> str:
        """
        Re-trigger a request that was accepted but never started.

        Returns:
            str: The new job reference.

        Raises:
            RequestNotFound, InvalidState, JobRunnerError
        """
        record = self._require(request_id)
        ensure_resendable(record)
        next_status(record.status, LifecycleEvent.RESEND, request_id)

        job_reference = self.runner.trigger(record.id, record.url)
        self.store.update(request_id, job_reference=job_reference)
        logger.info(
            f"Resent request {request_id}: job {record.job_reference} -> {job_reference}"
        )
        return job_reference

    @log_function(logger_name="lifecycle", log_args=True)
    def retry(self, request_id: str) -> IngestRequestRecord:
        """
        Put a FAILED request back in the queue and start a fresh run.

        Raises:
            RequestNotFound, InvalidState, JobRunnerError
        """
        record = self._require(request_id)
        ensure_retryable(record)
        status = next_status(record.status, LifecycleEvent.RETRY, request_id)

        self.store.update(
            request_id,
            status=status,
            stage=None,
            error_message=None,
            error_details=None,
            started_at=None,
            completed_at=None,
        )
        logger.info(
            f"Retrying request {request_id} (previous error: {record.error_message})"
        )
        job_reference = self.runner.trigger(record.id, record.url)
        return self.store.update(request_id, job_reference=job_reference)

    @log_function(logger_name="lifecycle", log_args=True)
    def delete(self, request_id: str, confirmed: bool = False) -> None:
        """
        Remove a request in any status.

        The external run, if any, is not cancelled.

        Raises:
            DeletionNotConfirmed: If ``confirmed`` is false (nothing is touched).
            RequestNotFound: If the id is unknown.
        """
        if not confirmed:
            raise DeletionNotConfirmed(request_id)
        record = self._require(request_id)
        next_status(record.status, LifecycleEvent.DELETE, request_id)

        if record.status == IngestStatus.RUNNING:
            logger.warning(
                f"Deleting running request {request_id}; job {record.job_reference} "
                "keeps running and its progress updates will be dropped"
            )
        if not self.store.delete(request_id):
            raise RequestNotFound(request_id)

    def get(self, request_id: str) -> IngestRequestRecord:
        return self._require(request_id)

    def list_requests(
        self, limit: int = 50, user_id: Optional[str] = None
    ) -> list[IngestRequestRecord]:
        return self.store.list_snapshot(limit=limit, user_id=user_id)

    def status_counts(self) -> dict[str, int]:
        return self.store.count_by_status()
