"""
FastAPI dependencies.

Collaborators are built once in create_app() and kept on ``app.state``;
routes reach them through these functions so tests can swap any of them.
"""

from fastapi import Request

from ingest_ops.config import Settings
from ingest_ops.lifecycle import LifecycleController
from ingest_ops.reports import ReportGenerationTrigger


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_controller(request: Request) -> LifecycleController:
    return request.app.state.controller


def get_report_trigger(request: Request) -> ReportGenerationTrigger:
    return request.app.state.report_trigger
