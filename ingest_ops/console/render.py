"""
Rich renderables for the operator console.

The status list mirrors the admin table: a status badge per row, a stage
badge while the request is running, the operator actions currently legal for
the row, and a detail panel under every expanded row.
"""

import json
from datetime import datetime
from typing import Iterable, Optional

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ingest_ops.db import IngestRequestRecord, IngestStatus
from ingest_ops.jobs import CLOUD_MODE_ON_LOCALHOST, DEV_SERVER_UNREACHABLE, JobRunnerHealth
from ingest_ops.lifecycle import can_delete, can_resend, can_retry
from ingest_ops.reports import ReportPeriod
from ingest_ops.sync import SyncViewState


STATUS_STYLES = {
    IngestStatus.QUEUED: "bold yellow",
    IngestStatus.RUNNING: "bold blue",
    IngestStatus.SUCCEEDED: "bold green",
    IngestStatus.FAILED: "bold red",
}

ISSUE_HINTS = {
    CLOUD_MODE_ON_LOCALHOST: (
        "Running in cloud mode on a local machine: events go to the cloud runner, "
        "which cannot reach this environment. Set JOB_RUNNER_DEV=1 or APP_ENV=development."
    ),
    DEV_SERVER_UNREACHABLE: (
        "The local job-runner dev server is not responding. Start it before submitting."
    ),
}


def _when(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


def status_badge(record: IngestRequestRecord) -> Text:
    return Text(record.status.value.upper(), style=STATUS_STYLES[record.status])


def stage_badge(record: IngestRequestRecord) -> Optional[Text]:
    """Stage label, shown only while the pipeline is running."""
    if record.status != IngestStatus.RUNNING or not record.stage:
        return None
    return Text(record.stage, style="cyan")


def row_actions(record: IngestRequestRecord) -> list[str]:
    actions = []
    if can_resend(record):
        actions.append("resend")
    if can_retry(record):
        actions.append("retry")
    if can_delete(record):
        actions.append("delete")
    return actions


def render_detail(record: IngestRequestRecord) -> Panel:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="dim")
    grid.add_column()
    grid.add_row("URL", record.url)
    grid.add_row("Owner", record.user_id)
    grid.add_row("Source", record.source.value)
    grid.add_row("Job reference", record.job_reference or "-")
    grid.add_row("Created", _when(record.created_at))
    grid.add_row("Started", _when(record.started_at))
    grid.add_row("Completed", _when(record.completed_at))
    grid.add_row("Updated", _when(record.updated_at))
    if record.episode_id:
        grid.add_row("Episode", record.episode_id)
    if record.error_message:
        grid.add_row("Error", Text(record.error_message, style="red"))
    if record.error_details is not None:
        grid.add_row("Details", json.dumps(record.error_details, indent=2, default=str))
    return Panel(grid, title=f"Request {record.id}", border_style=STATUS_STYLES[record.status].split()[-1])


def render_requests(
    records: Iterable[IngestRequestRecord],
    expanded: Optional[set[str]] = None,
    title: str = "Ingest requests",
) -> Group:
    """Status table followed by detail panels for expanded rows."""
    expanded = expanded or set()
    records = list(records)

    table = Table(title=title, show_lines=False, expand=True)
    table.add_column("", width=1)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Status")
    table.add_column("Stage")
    table.add_column("URL", overflow="ellipsis", no_wrap=True, ratio=1)
    table.add_column("Created", no_wrap=True)
    table.add_column("Actions", style="magenta")

    for record in records:
        table.add_row(
            "v" if record.id in expanded else ">",
            record.id[:8],
            status_badge(record),
            stage_badge(record) or "",
            record.url,
            _when(record.created_at),
            " ".join(row_actions(record)),
        )

    details = [render_detail(r) for r in records if r.id in expanded]
    return Group(table, *details)


def render_counts(counts: dict[str, int]) -> Text:
    text = Text()
    for status in IngestStatus:
        if len(text):
            text.append("  ")
        text.append(f"{status.value}: {counts.get(status.value, 0)}", style=STATUS_STYLES[status])
    return text


def render_view(state: SyncViewState, interval: float) -> Group:
    """Full watch screen: header line plus the status list."""
    header = Text()
    if state.paused:
        header.append("Live updates paused", style="bold yellow")
        header.append("  (ingest-ops resume)", style="dim")
    else:
        header.append(f"Live updates every {interval:g}s", style="green")
    header.append(f"  last sync: {_when(state.last_synced_at)}", style="dim")

    counts = {status.value: 0 for status in IngestStatus}
    for record in state.records:
        counts[record.status.value] += 1
    return Group(header, render_counts(counts), render_requests(state.records, state.expanded))


def render_health(health: JobRunnerHealth) -> Panel:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="dim")
    grid.add_column()
    grid.add_row("Mode", health.mode)
    grid.add_row("Endpoint", health.base_url)
    grid.add_row("Local machine", "yes" if health.is_localhost else "no")
    if health.mode == "dev":
        grid.add_row(
            "Dev server",
            Text("reachable", style="green") if health.dev_server_reachable else Text("unreachable", style="red"),
        )
    if health.error:
        grid.add_row("Error", Text(health.error, style="red"))
    for issue in health.issues:
        grid.add_row(Text(issue, style="bold red"), ISSUE_HINTS.get(issue, ""))

    style = "green" if health.healthy else "red"
    title = "Job runner healthy" if health.healthy else "Job runner misconfigured"
    return Panel(grid, title=title, border_style=style)


def render_period(period: ReportPeriod) -> Panel:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="dim")
    grid.add_column()
    grid.add_row("Kind", period.kind.value)
    grid.add_row("Start", period.start.isoformat())
    grid.add_row("End", period.end.isoformat())
    grid.add_row("Key", Text(period.key, style="bold"))
    return Panel(grid, title=period.label, border_style="blue")
