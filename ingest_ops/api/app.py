"""
FastAPI application factory for the operator HTTP surface.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ingest_ops import __version__
from ingest_ops.config import Settings, get_settings
from ingest_ops.db import (
    IngestRequestStore,
    ReportStore,
    check_database_connection,
    configure_database,
)
from ingest_ops.jobs import EventApiJobRunner, JobRunner, JobRunnerError
from ingest_ops.lifecycle import (
    DeletionNotConfirmed,
    DuplicateSubmission,
    IngestOpsError,
    InvalidState,
    LifecycleController,
    RequestNotFound,
    UnsupportedSource,
)
from ingest_ops.logger import setup_logging
from ingest_ops.reports import ReportAlreadyGenerating, ReportGenerationTrigger
from .routes import router


logger = setup_logging(logger_name="api", log_file="logs/api.log")

ERROR_STATUS_CODES = {
    DuplicateSubmission: 409,
    InvalidState: 409,
    ReportAlreadyGenerating: 409,
    RequestNotFound: 404,
    UnsupportedSource: 400,
    DeletionNotConfirmed: 400,
}


def _status_for(exc: IngestOpsError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


def create_app(
    settings: Optional[Settings] = None,
    runner: Optional[JobRunner] = None,
    controller: Optional[LifecycleController] = None,
    report_trigger: Optional[ReportGenerationTrigger] = None,
    configure_db: bool = True,
) -> FastAPI:
    """
    Build the API with its collaborators.

    Args:
        settings: Configuration (defaults to process settings)
        runner: Job runner (an EventApiJobRunner by default)
        controller: Lifecycle controller (built from the store and runner by default)
        report_trigger: Report trigger (built from the report store and runner by default)
        configure_db: Point the global engine at ``settings.database_url``
    """
    settings = settings or get_settings()
    if configure_db:
        configure_database(settings.database_url)

    runner = runner or EventApiJobRunner(settings)

    app = FastAPI(title="ingest-ops", version=__version__)
    app.state.settings = settings
    app.state.controller = controller or LifecycleController(IngestRequestStore(), runner)
    app.state.report_trigger = report_trigger or ReportGenerationTrigger(ReportStore(), runner)

    @app.exception_handler(IngestOpsError)
    async def handle_operator_error(request: Request, exc: IngestOpsError):
        status_code = _status_for(exc)
        logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
        body = {"error": str(exc)}
        if isinstance(exc, DuplicateSubmission) and exc.existing_id:
            body["requestId"] = exc.existing_id
        return JSONResponse(status_code=status_code, content=body)

    @app.exception_handler(JobRunnerError)
    async def handle_job_runner_error(request: Request, exc: JobRunnerError):
        logger.error(f"{request.method} {request.url.path} -> 502: {exc}")
        return JSONResponse(status_code=502, content={"error": str(exc)})

    @app.get("/health")
    def health():
        return {"status": "ok", "database": check_database_connection(), "version": __version__}

    app.include_router(router)
    return app
