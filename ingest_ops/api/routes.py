"""
Admin routes: ingest request lifecycle, job-runner health and report triggers.

Operator errors raised by the controller are mapped to HTTP status codes by
the exception handlers registered in create_app().
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ingest_ops.config import Settings
from ingest_ops.jobs import probe_job_runner
from ingest_ops.lifecycle import LifecycleController
from ingest_ops.reports import ReportGenerationTrigger
from .dependencies import get_app_settings, get_controller, get_report_trigger
from .schemas import (
    BackfillOut,
    DeleteOut,
    IngestRequestOut,
    IngestSnapshotOut,
    IngestSubmitIn,
    ReportTriggerIn,
    ReportTriggerOut,
    ResendIn,
    ResendOut,
)
from .security import verify_internal_key

router = APIRouter(prefix="/api/admin", dependencies=[Depends(verify_internal_key)])

# ----------------------------
# Ingest requests
# ----------------------------


@router.get("/ingest", response_model=IngestSnapshotOut)
def list_ingest_requests(
    limit: int = Query(50, ge=1, le=500),
    user_id: Optional[str] = Query(None),
    controller: LifecycleController = Depends(get_controller),
):
    records = controller.list_requests(limit=limit, user_id=user_id)
    return IngestSnapshotOut(
        requests=[IngestRequestOut.from_record(r) for r in records],
        counts=controller.status_counts(),
    )


@router.post("/ingest", response_model=IngestRequestOut, status_code=status.HTTP_201_CREATED)
def submit_ingest_request(
    payload: IngestSubmitIn,
    controller: LifecycleController = Depends(get_controller),
):
    record = controller.submit(payload.url, payload.user_id, source=payload.source)
    return IngestRequestOut.from_record(record)


@router.post("/ingest/resend", response_model=ResendOut)
def resend_ingest_request(
    payload: ResendIn,
    controller: LifecycleController = Depends(get_controller),
):
    job_reference = controller.resend(payload.requestId)
    return ResendOut(requestId=payload.requestId, jobReference=job_reference)


@router.post("/ingest/{request_id}/retry", response_model=IngestRequestOut)
def retry_ingest_request(
    request_id: str,
    controller: LifecycleController = Depends(get_controller),
):
    return IngestRequestOut.from_record(controller.retry(request_id))


@router.delete("/ingest/{request_id}", response_model=DeleteOut)
def delete_ingest_request(
    request_id: str,
    confirm: bool = Query(False),
    controller: LifecycleController = Depends(get_controller),
):
    controller.delete(request_id, confirmed=confirm)
    return DeleteOut(requestId=request_id)


# ----------------------------
# Diagnostics
# ----------------------------


@router.get("/job-runner-health")
def job_runner_health(settings: Settings = Depends(get_app_settings)):
    return probe_job_runner(settings).to_dict()


# ----------------------------
# Reports
# ----------------------------


@router.post("/reports", response_model=ReportTriggerOut, status_code=status.HTTP_202_ACCEPTED)
def trigger_report(
    payload: ReportTriggerIn,
    trigger: ReportGenerationTrigger = Depends(get_report_trigger),
):
    try:
        triggered = trigger.trigger(
            payload.kind,
            preset=payload.preset,
            start=payload.start,
            end=payload.end,
            requested_by=payload.requested_by,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ReportTriggerOut(**triggered.to_dict())


@router.post("/reports/backfill", response_model=BackfillOut, status_code=status.HTTP_202_ACCEPTED)
def backfill_reports(trigger: ReportGenerationTrigger = Depends(get_report_trigger)):
    return BackfillOut(jobReference=trigger.backfill_daily())
