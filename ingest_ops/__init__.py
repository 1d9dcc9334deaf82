"""
Ingestion operations for the podcast content platform.

This package owns the lifecycle of ingestion requests and the tooling
operators use to watch and steer them:

- db: SQLAlchemy models and the ingest-request / report stores
- lifecycle: state machine, LifecycleController and pipeline progress hooks
- jobs: job-runner client and its health probe
- sync: snapshot merge and the polling LiveSyncClient
- reports: calendar-period calculator and report generation triggers
- api: FastAPI admin routes
- console: rich terminal console (``python -m ingest_ops``)
"""

__version__ = "0.1.0"
