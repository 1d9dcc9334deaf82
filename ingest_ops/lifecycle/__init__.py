"""
Ingestion request lifecycle.

- state_machine.py: Legal transitions and per-status record shape
- controller.py: Operator operations (submit, resend, retry, delete)
- progress.py: Pipeline-side status and stage reporting
- sources.py: URL classification (YouTube / direct audio)
- errors.py: Operator-facing exceptions
"""

from .errors import (
    DeletionNotConfirmed,
    DuplicateSubmission,
    IngestOpsError,
    InvalidState,
    RequestNotFound,
    UnsupportedSource,
)
from .state_machine import (
    LifecycleEvent,
    TRANSITIONS,
    can_delete,
    can_resend,
    can_retry,
    check_invariants,
    next_status,
)
from .progress import (
    PIPELINE_STAGES,
    advance_stage,
    mark_failed,
    mark_running,
    mark_succeeded,
)
from .sources import detect_source, extract_youtube_video_id, is_audio_url
from .controller import LifecycleController

__all__ = [
    "DeletionNotConfirmed",
    "DuplicateSubmission",
    "IngestOpsError",
    "InvalidState",
    "RequestNotFound",
    "UnsupportedSource",
    "LifecycleEvent",
    "TRANSITIONS",
    "can_delete",
    "can_resend",
    "can_retry",
    "check_invariants",
    "next_status",
    "PIPELINE_STAGES",
    "advance_stage",
    "mark_failed",
    "mark_running",
    "mark_succeeded",
    "detect_source",
    "extract_youtube_video_id",
    "is_audio_url",
    "LifecycleController",
]
