"""
Progress reporting for the external ingestion pipeline.

The job that processes an ingest request reports back through these four
functions instead of writing columns directly, so every record it touches
stays in a legal shape (stage only while running, error only when failed,
completed_at only once terminal).
"""

from typing import Any, Optional

from ingest_ops.db import IngestRequestRecord, IngestRequestStore, utcnow
from ingest_ops.logger import setup_logging, log_function
from .errors import RequestNotFound
from .state_machine import LifecycleEvent, next_status


logger = setup_logging(logger_name="lifecycle", log_file="logs/lifecycle.log")

PIPELINE_STAGES = (
    "metadata",
    "download",
    "transcribe",
    "summarize",
    "qc",
    "persist",
    "cleanup",
)


def _load(store: IngestRequestStore, request_id: str) -> IngestRequestRecord:
    record = store.get(request_id)
    if record is None:
        raise RequestNotFound(request_id)
    return record


def _check_stage(request_id: str, stage: Optional[str]) -> None:
    if stage is not None and stage not in PIPELINE_STAGES:
        logger.warning(f"Request {request_id}: unknown pipeline stage '{stage}'")


@log_function(logger_name="lifecycle", log_args=True)
def mark_running(
    store: IngestRequestStore, request_id: str, stage: Optional[str] = None
) -> IngestRequestRecord:
    """Move a queued request to RUNNING and stamp ``started_at``."""
    record = _load(store, request_id)
    status = next_status(record.status, LifecycleEvent.START, request_id)
    _check_stage(request_id, stage)
    return store.update(
        request_id,
        status=status,
        stage=stage,
        started_at=utcnow(),
        completed_at=None,
    )


@log_function(logger_name="lifecycle", log_args=True)
def advance_stage(
    store: IngestRequestStore, request_id: str, stage: str
) -> IngestRequestRecord:
    record = _load(store, request_id)
    next_status(record.status, LifecycleEvent.ADVANCE_STAGE, request_id)
    _check_stage(request_id, stage)
    return store.update(request_id, stage=stage)


@log_function(logger_name="lifecycle", log_args=True)
def mark_succeeded(
    store: IngestRequestStore, request_id: str, episode_id: str
) -> IngestRequestRecord:
    """Finish a running request with the episode it produced."""
    record = _load(store, request_id)
    status = next_status(record.status, LifecycleEvent.SUCCEED, request_id)
    return store.update(
        request_id,
        status=status,
        stage=None,
        episode_id=episode_id,
        completed_at=utcnow(),
    )


@log_function(logger_name="lifecycle", log_args=True)
def mark_failed(
    store: IngestRequestStore,
    request_id: str,
    message: str,
    details: Optional[Any] = None,
) -> IngestRequestRecord:
    """
    Finish a running request as FAILED.

    Args:
        message: Short human-readable failure reason.
        details: Optional JSON-serializable payload (stage, stack, etc.).
    """
    record = _load(store, request_id)
    status = next_status(record.status, LifecycleEvent.FAIL, request_id)
    logger.warning(f"Request {request_id} failed at stage '{record.stage}': {message}")
    return store.update(
        request_id,
        status=status,
        stage=None,
        error_message=message,
        error_details=details,
        completed_at=utcnow(),
    )
