"""
Ingestion request state machine.

States progress QUEUED -> RUNNING -> {SUCCEEDED, FAILED}. FAILED -> QUEUED
(retry) is the only back-edge, QUEUED -> QUEUED (resend) re-triggers a run
that was accepted but never started, and DELETE removes a request from any
state.

Operator edges (SUBMIT, RESEND, RETRY, DELETE) are driven by
LifecycleController; pipeline edges (START, ADVANCE_STAGE, SUCCEED, FAIL) by
the external job through ingest_ops.lifecycle.progress. This module only
decides which edges are legal and what a well-formed record looks like.
"""

from enum import Enum
from typing import Optional

from ingest_ops.db import IngestRequestRecord, IngestStatus, TERMINAL_STATUSES
from .errors import InvalidState


class LifecycleEvent(str, Enum):
    SUBMIT = "submit"
    RESEND = "resend"
    START = "start"
    ADVANCE_STAGE = "advance_stage"
    SUCCEED = "succeed"
    FAIL = "fail"
    RETRY = "retry"
    DELETE = "delete"


# (from status, event) -> to status. None as a source means "no record yet";
# None as a target means the record is removed.
TRANSITIONS: dict[tuple[Optional[IngestStatus], LifecycleEvent], Optional[IngestStatus]] = {
    (None, LifecycleEvent.SUBMIT): IngestStatus.QUEUED,
    (IngestStatus.QUEUED, LifecycleEvent.RESEND): IngestStatus.QUEUED,
    (IngestStatus.QUEUED, LifecycleEvent.START): IngestStatus.RUNNING,
    (IngestStatus.RUNNING, LifecycleEvent.ADVANCE_STAGE): IngestStatus.RUNNING,
    (IngestStatus.RUNNING, LifecycleEvent.SUCCEED): IngestStatus.SUCCEEDED,
    (IngestStatus.RUNNING, LifecycleEvent.FAIL): IngestStatus.FAILED,
    (IngestStatus.FAILED, LifecycleEvent.RETRY): IngestStatus.QUEUED,
}
for _status in IngestStatus:
    TRANSITIONS[(_status, LifecycleEvent.DELETE)] = None


def next_status(
    status: Optional[IngestStatus], event: LifecycleEvent, request_id: str = "-"
) -> Optional[IngestStatus]:
    """
    Target status for ``event`` applied in ``status``.

    Raises:
        InvalidState: If the transition table has no such edge.
    """
    key = (status, event)
    if key not in TRANSITIONS:
        raise InvalidState(
            request_id, status.value if status else "none", event.value
        )
    return TRANSITIONS[key]


def can_resend(record: IngestRequestRecord) -> bool:
    """Resend is only for runs that were queued but never started."""
    return record.status == IngestStatus.QUEUED and record.started_at is None


def can_retry(record: IngestRequestRecord) -> bool:
    return record.status == IngestStatus.FAILED


def can_delete(record: IngestRequestRecord) -> bool:
    return True


def ensure_resendable(record: IngestRequestRecord) -> None:
    if record.status != IngestStatus.QUEUED:
        raise InvalidState(record.id, record.status.value, "resend", "only queued requests can be resent")
    if record.started_at is not None:
        raise InvalidState(record.id, record.status.value, "resend", "the run has already started")


def ensure_retryable(record: IngestRequestRecord) -> None:
    if not can_retry(record):
        raise InvalidState(record.id, record.status.value, "retry", "only failed requests can be retried")


def check_invariants(record: IngestRequestRecord) -> list[str]:
    """
    List the ways ``record`` violates the per-status shape rules.

    Returns:
        Human-readable violations; empty when the record is well formed.
    """
    violations = []
    status = record.status

    if record.stage is not None and status != IngestStatus.RUNNING:
        violations.append(f"stage '{record.stage}' set while {status.value}")
    if status != IngestStatus.FAILED and (
        record.error_message is not None or record.error_details is not None
    ):
        violations.append(f"error payload set while {status.value}")
    if status in TERMINAL_STATUSES and record.completed_at is None:
        violations.append(f"completed_at missing while {status.value}")
    if status not in TERMINAL_STATUSES and record.completed_at is not None:
        violations.append(f"completed_at set while {status.value}")
    if record.episode_id is not None and status != IngestStatus.SUCCEEDED:
        violations.append(f"episode_id set while {status.value}")
    return violations
