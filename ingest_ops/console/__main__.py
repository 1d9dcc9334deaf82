#!/usr/bin/env python3
"""
Operator console for ingest requests and report generation.

Usage:
    python -m ingest_ops submit "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    python -m ingest_ops list --limit 20
    python -m ingest_ops watch --interval 5
    python -m ingest_ops retry <request-id>
    python -m ingest_ops report weekly --preset last-week

Examples:
    # Live status list, reading the HTTP API instead of the database
    python -m ingest_ops watch --remote http://localhost:8000

    # Freeze the live list of a running `watch` (same session), then unfreeze it
    python -m ingest_ops pause
    python -m ingest_ops resume

    # Show and hide the detail panel of a request in `list` / `watch`
    python -m ingest_ops expand 3f2a9c1e-...
    python -m ingest_ops collapse 3f2a9c1e-...

    # Why is everything stuck in "queued"?
    python -m ingest_ops health

    # Period keys
    python -m ingest_ops period weekly --start 2024-12-30
    python -m ingest_ops period quarterly --key 2025-Q1
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

import uvicorn
from rich.console import Console
from rich.live import Live
from rich.prompt import Confirm

from ingest_ops.api import create_app
from ingest_ops.config import Settings, get_settings
from ingest_ops.db import (
    IngestRequestStore,
    IngestSource,
    ReportKind,
    ReportStore,
    configure_database,
    init_database,
)
from ingest_ops.jobs import EventApiJobRunner, JobRunnerError, probe_job_runner
from ingest_ops.lifecycle import IngestOpsError, LifecycleController
from ingest_ops.logger import setup_logging
from ingest_ops.reports import PRESETS, ReportGenerationTrigger, parse_key, resolve_period
from ingest_ops.sync import (
    HttpSnapshotFetcher,
    LiveSyncClient,
    SessionFlagStore,
    SyncViewState,
    http_snapshot_fetcher,
    store_snapshot_fetcher,
)
from .render import (
    render_counts,
    render_detail,
    render_health,
    render_period,
    render_requests,
    render_view,
)


console = Console()

KINDS = [kind.value for kind in ReportKind]


def build_controller(settings: Settings) -> LifecycleController:
    return LifecycleController(IngestRequestStore(), EventApiJobRunner(settings))


def flag_store_for(args: argparse.Namespace, settings: Settings) -> SessionFlagStore:
    return SessionFlagStore(settings.session_dir, args.session)


# ----------------------------
# Ingest requests
# ----------------------------


def cmd_submit(args: argparse.Namespace, settings: Settings) -> int:
    source = IngestSource(args.source) if args.source else None
    record = build_controller(settings).submit(args.url, args.user, source=source)
    console.print(f"[green]✓[/green] Queued request [bold]{record.id}[/bold] ({record.source.value})")
    console.print(f"[dim]Job reference: {record.job_reference}[/dim]")
    return 0


def cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    controller = build_controller(settings)
    records = controller.list_requests(limit=args.limit, user_id=args.user)
    if args.json:
        print(json.dumps([r.to_dict() for r in records], indent=2))
        return 0
    console.print(render_counts(controller.status_counts()))
    console.print(render_requests(records, flag_store_for(args, settings).load_expanded()))
    return 0


def cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    console.print(render_detail(build_controller(settings).get(args.request_id)))
    return 0


async def _watch(args: argparse.Namespace, settings: Settings) -> None:
    flags = flag_store_for(args, settings)
    interval = args.interval or settings.sync_interval

    if args.remote:
        fetch = http_snapshot_fetcher(
            args.remote, api_key=settings.internal_api_key, limit=settings.snapshot_limit
        )
    else:
        fetch = store_snapshot_fetcher(IngestRequestStore(), limit=settings.snapshot_limit)

    state = SyncViewState(expanded=flags.load_expanded())
    try:
        with Live(render_view(state, interval), console=console, refresh_per_second=4) as live:
            client = LiveSyncClient(
                fetch,
                state,
                interval=interval,
                flag_store=flags,
                on_update=lambda s: live.update(render_view(s, interval)),
            )
            # A paused session stays frozen (and offline) until resumed
            await client.start()
            try:
                while True:
                    await asyncio.sleep(1)
                    paused = flags.load_paused()
                    if paused and not state.paused:
                        await client.pause()
                    elif not paused and state.paused:
                        await client.resume()
                    state.expanded = flags.load_expanded()
                    live.update(render_view(state, interval))
            finally:
                await client.stop()
    finally:
        if isinstance(fetch, HttpSnapshotFetcher):
            await fetch.close()


def cmd_watch(args: argparse.Namespace, settings: Settings) -> int:
    try:
        asyncio.run(_watch(args, settings))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped watching[/dim]")
    return 0


def cmd_expand(args: argparse.Namespace, settings: Settings) -> int:
    flags = flag_store_for(args, settings)
    expanded = flags.load_expanded()
    if args.command == "expand":
        expanded.add(args.request_id)
    else:
        expanded.discard(args.request_id)
    flags.save_expanded(expanded)
    state = "expanded" if args.command == "expand" else "collapsed"
    console.print(f"[dim]{args.request_id} {state}[/dim]")
    return 0


def cmd_pause(args: argparse.Namespace, settings: Settings) -> int:
    paused = args.command == "pause"
    flag_store_for(args, settings).save_paused(paused)
    console.print("Live updates paused" if paused else "Live updates resumed")
    return 0


def cmd_resend(args: argparse.Namespace, settings: Settings) -> int:
    job_reference = build_controller(settings).resend(args.request_id)
    console.print(f"[green]✓[/green] Resent {args.request_id} (job {job_reference})")
    return 0


def cmd_retry(args: argparse.Namespace, settings: Settings) -> int:
    record = build_controller(settings).retry(args.request_id)
    console.print(f"[green]✓[/green] Request {record.id} queued again (job {record.job_reference})")
    return 0


def cmd_delete(args: argparse.Namespace, settings: Settings) -> int:
    controller = build_controller(settings)
    record = controller.get(args.request_id)
    confirmed = args.yes or Confirm.ask(
        f"Delete request {record.id} ({record.status.value}) for {record.url}?", default=False
    )
    if not confirmed:
        console.print("[dim]Nothing deleted[/dim]")
        return 1
    controller.delete(record.id, confirmed=True)

    flags = flag_store_for(args, settings)
    expanded = flags.load_expanded()
    if record.id in expanded:
        expanded.discard(record.id)
        flags.save_expanded(expanded)
    console.print(f"[green]✓[/green] Deleted {record.id}")
    return 0


# ----------------------------
# Diagnostics and reports
# ----------------------------


def cmd_health(args: argparse.Namespace, settings: Settings) -> int:
    health = probe_job_runner(settings)
    if args.json:
        print(json.dumps(health.to_dict(), indent=2))
    else:
        console.print(render_health(health))
    return 0 if health.healthy else 2


def cmd_period(args: argparse.Namespace, settings: Settings) -> int:
    if args.key:
        period = parse_key(args.kind, args.key)
    else:
        period = resolve_period(
            args.kind, preset=args.preset, start=args.start, end=args.end, now=args.now
        )
    console.print(render_period(period))
    return 0


def cmd_report(args: argparse.Namespace, settings: Settings) -> int:
    trigger = ReportGenerationTrigger(ReportStore(), EventApiJobRunner(settings))
    triggered = trigger.trigger(
        args.kind,
        preset=args.preset,
        start=args.start,
        end=args.end,
        requested_by=args.by,
    )
    console.print(
        f"[green]✓[/green] {triggered.event_name} sent for "
        f"[bold]{triggered.period.key}[/bold] ({triggered.period.label})"
    )
    return 0


def cmd_backfill(args: argparse.Namespace, settings: Settings) -> int:
    trigger = ReportGenerationTrigger(ReportStore(), EventApiJobRunner(settings))
    job_reference = trigger.backfill_daily()
    console.print(f"[green]✓[/green] Daily backfill started (job {job_reference})")
    return 0


# ----------------------------
# Setup and server
# ----------------------------


def cmd_init_db(args: argparse.Namespace, settings: Settings) -> int:
    init_database()
    console.print(f"[green]✓[/green] Tables created in {settings.database_url}")
    return 0


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    uvicorn.run(create_app(settings), host=args.host, port=args.port)
    return 0


def _add_period_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("kind", choices=KINDS, help="Report period kind")
    parser.add_argument("--preset", choices=PRESETS, help="Named period relative to today")
    parser.add_argument("--start", metavar="YYYY-MM-DD", help="Explicit period start")
    parser.add_argument(
        "--end",
        metavar="YYYY-MM-DD",
        help="Explicit period end (default: end of the week/month/quarter containing --start)",
    )


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="ingest-ops",
        description="Ingestion operations console - submit and supervise ingest requests, trigger reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Notes:
  - Configuration comes from the environment / .env (DATABASE_URL, JOB_RUNNER_*, ...)
  - pause/resume/expand/collapse are remembered per --session
  - Logs written to logs/<subsystem>.log
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging output")
    parser.add_argument(
        "--session", default="default", metavar="ID", help="Operator session id (default: default)"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("submit", help="Submit a YouTube or direct audio URL")
    p.add_argument("url")
    p.add_argument("--user", default="admin", help="Owner of the request")
    p.add_argument("--source", choices=[s.value for s in IngestSource], help="Override URL detection")
    p.set_defaults(func=cmd_submit)

    p = sub.add_parser("list", help="Show the latest requests")
    p.add_argument("--limit", type=int, default=50)
    p.add_argument("--user", help="Only this owner's requests")
    p.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Show one request in detail")
    p.add_argument("request_id")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("watch", help="Live status list")
    p.add_argument("--interval", type=float, help="Seconds between refreshes (default: SYNC_INTERVAL_SECONDS)")
    p.add_argument("--remote", metavar="URL", help="Poll the HTTP API at URL instead of the database")
    p.set_defaults(func=cmd_watch)

    for name, help_text in (("expand", "Show a request's detail panel"), ("collapse", "Hide a request's detail panel")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("request_id")
        p.set_defaults(func=cmd_expand)

    sub.add_parser("pause", help="Pause live updates for this session").set_defaults(func=cmd_pause)
    sub.add_parser("resume", help="Resume live updates for this session").set_defaults(func=cmd_pause)

    p = sub.add_parser("resend", help="Re-trigger a queued request that never started")
    p.add_argument("request_id")
    p.set_defaults(func=cmd_resend)

    p = sub.add_parser("retry", help="Queue a failed request again")
    p.add_argument("request_id")
    p.set_defaults(func=cmd_retry)

    p = sub.add_parser("delete", help="Delete a request (does not stop a running job)")
    p.add_argument("request_id")
    p.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("health", help="Diagnose the job-runner configuration")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_health)

    p = sub.add_parser("period", help="Compute a report period and its key")
    _add_period_arguments(p)
    p.add_argument("--key", help="Parse a canonical key instead (e.g. 2025-W06)")
    p.add_argument("--now", metavar="YYYY-MM-DD", help="Pretend today is this date")
    p.set_defaults(func=cmd_period)

    p = sub.add_parser("report", help="Trigger report generation")
    _add_period_arguments(p)
    p.add_argument("--by", default="admin", help="Requesting operator")
    p.set_defaults(func=cmd_report)

    sub.add_parser("backfill", help="Generate every missing daily report").set_defaults(func=cmd_backfill)
    sub.add_parser("init-db", help="Create database tables").set_defaults(func=cmd_init_db)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.set_defaults(func=cmd_serve)

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the operator console."""
    args = parse_arguments(argv)
    settings = get_settings()

    logger = setup_logging(
        logger_name="console",
        log_file=f"{settings.log_dir}/console.log",
        verbose=args.verbose,
    )
    configure_database(settings.database_url)
    logger.info(f"Command: {args.command}")

    try:
        return args.func(args, settings)
    except IngestOpsError as e:
        logger.warning(f"{args.command} refused: {e}")
        console.print(f"[red]✗ {e}[/red]")
    except JobRunnerError as e:
        logger.error(f"{args.command} failed: {e}")
        console.print(f"[red]✗ Job runner error: {e}[/red]")
        console.print("[dim]Run `ingest-ops health` to check the job-runner configuration[/dim]")
    except ValueError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        console.print("[dim]Run with --help for usage information[/dim]")
    return 1


if __name__ == "__main__":
    sys.exit(main())
