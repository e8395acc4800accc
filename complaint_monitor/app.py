"""Typer CLI entrypoint for complaint-monitor."""

from __future__ import annotations

import signal
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Event
from typing import Iterable, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table
from typer import BadParameter

from .config import ConfigRepository, GlobalConfig
from .engine import ComplaintScraper, ComplaintStore, MonitorLedger, ThreadPoolManager
from .errors import MonitorError
from .infra import SQLiteManager, UserAgentPool
from .logging_conf import available_logs, configure_logging, tail_log
from .models import ComplaintFilters, ComplaintRecord
from .monitor import JobRegistry
from .scheduler import APSchedulerAdapter
from .service import MonitorService

app = typer.Typer(
    help="Monitor company complaints and keep a deduplicated history.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
monitor_app = typer.Typer(
    name="monitor",
    help="Manage monitored companies.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
complaints_app = typer.Typer(
    name="complaints",
    help="Query, fetch and purge complaints.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    global_config: GlobalConfig
    storage: SQLiteManager
    scraper: ComplaintScraper
    scheduler: APSchedulerAdapter
    thread_pool: ThreadPoolManager
    registry: JobRegistry
    service: MonitorService


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    global_config = repository.load_global_config()
    storage = SQLiteManager()
    db_path = repository.database_path()
    store = ComplaintStore(storage, db_path)
    ledger = MonitorLedger(storage, db_path)

    ua_pool = None
    if global_config.user_agent_list:
        ua_pool = UserAgentPool(global_config.user_agent_list, fallback=global_config.user_agent)

    scraper = ComplaintScraper(global_config, ua_pool=ua_pool)
    scheduler = APSchedulerAdapter(timezone=global_config.timezone)
    thread_pool = ThreadPoolManager(global_config.worker_threads)
    registry = JobRegistry(
        scraper=scraper,
        store=store,
        ledger=ledger,
        scheduler=scheduler,
        thread_pool=thread_pool,
        skip_overlapping_cycles=global_config.skip_overlapping_cycles,
    )
    service = MonitorService(
        registry=registry,
        store=store,
        ledger=ledger,
        scraper=scraper,
        default_limit=global_config.default_query_limit,
        purge_days=global_config.purge_days,
    )
    return AppState(
        repository=repository,
        global_config=global_config,
        storage=storage,
        scraper=scraper,
        scheduler=scheduler,
        thread_pool=thread_pool,
        registry=registry,
        service=service,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _fail(exc: MonitorError) -> None:
    console.print(f"{exc.kind}: {exc.detail}", style="red")
    raise typer.Exit(code=1)


def _parse_datetime_option(value: Optional[str], option_name: str) -> Optional[datetime]:
    if value is None:
        return None
    text = value.strip()
    if not text:
        raise BadParameter(f"{option_name} cannot be empty.")
    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        candidate = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise BadParameter(
            f"{option_name} must be an ISO8601 timestamp, e.g. 2024-10-14T08:00-03:00."
        ) from exc
    if candidate.tzinfo is None:
        return candidate.replace(tzinfo=timezone.utc)
    return candidate.astimezone(timezone.utc)


def _render_configs_table(configs: Sequence[dict]) -> Table:
    table = Table(title=f"Monitored companies · {len(configs)}", box=box.SIMPLE_HEAD)
    table.add_column("Company", style="cyan", no_wrap=True)
    table.add_column("Interval", style="yellow")
    table.add_column("Active", style="green")
    table.add_column("Updated", style="dim")
    for config in configs:
        table.add_row(
            config["entity"],
            config["interval"],
            "yes" if config["active"] else "no",
            str(config.get("updated_at") or "-"),
        )
    return table


def _render_complaints_table(title: str, records: Iterable[ComplaintRecord]) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD, show_lines=False)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Company", style="cyan")
    table.add_column("Title", overflow="fold")
    table.add_column("Status", style="magenta")
    table.add_column("Location", style="green")
    table.add_column("Collected", style="dim")
    for record in records:
        table.add_row(
            record.external_id or "-",
            record.entity,
            record.title,
            record.status,
            record.location,
            record.collected_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def run_daemon(state: AppState, stop_event: Event) -> int:
    """Run scheduled monitoring until ``stop_event`` is set, then drain all jobs."""

    logger = configure_logging().bind(component="daemon")
    state.scheduler.start()
    try:
        state.registry.reconcile()
        state.registry.schedule_ledger_sync(state.global_config.ledger_sync_seconds)
        logger.info("daemon_ready", jobs=len(state.registry.list()))
        stop_event.wait()
    finally:
        drained = state.registry.stop_all()
        state.scheduler.shutdown()
        state.thread_pool.shutdown(wait=True)
        state.scraper.close()
        state.storage.close_all()
        logger.info("daemon_stopped", drained=drained)
    return drained


app.add_typer(monitor_app, name="monitor")
app.add_typer(complaints_app, name="complaints")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    try:
        ctx.obj = build_state(verbose)
    except MonitorError as exc:
        _fail(exc)


@app.command("serve", help="Run the scheduler until SIGINT/SIGTERM.")
def serve(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    stop_event = Event()

    def _handle_signal(signum, _frame) -> None:  # noqa: ANN001
        configure_logging().warning("shutdown_signal", signal=signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)
    console.print("Monitoring started. Press Ctrl+C to stop.", style="green")
    try:
        drained = run_daemon(state, stop_event)
    except MonitorError as exc:
        _fail(exc)
    console.print(f"Stopped {drained} job(s).", style="dim")


@monitor_app.command("start", help="Register a company and run one fetch cycle now.")
def monitor_start(
    ctx: typer.Context,
    entity: str = typer.Argument(..., help="Company name as shown on the site."),
    interval: str = typer.Argument(
        "1h", help="10min, 30min, 1h, 3h, 6h, 12h, diario/1d, semanal/1w."
    ),
) -> None:
    state = _get_state(ctx)
    try:
        result = state.service.start_monitoring(entity, interval)
    except MonitorError as exc:
        _fail(exc)
    console.print(
        f"Monitoring `{result['entity']}` every {result['interval']}.", style="green"
    )


@monitor_app.command("stop", help="Stop monitoring a company.")
def monitor_stop(ctx: typer.Context, entity: str = typer.Argument(...)) -> None:
    state = _get_state(ctx)
    try:
        result = state.service.stop_monitoring(entity)
    except MonitorError as exc:
        _fail(exc)
    console.print(f"Monitoring stopped for `{result['entity']}`.", style="green")


@monitor_app.command("list", help="List monitored companies from the ledger.")
def monitor_list(
    ctx: typer.Context,
    include_all: bool = typer.Option(False, "--all", help="Include inactive rows."),
) -> None:
    state = _get_state(ctx)
    try:
        configs = state.service.list_monitoring(include_inactive=include_all)
    except MonitorError as exc:
        _fail(exc)
    if not configs:
        console.print("No companies are being monitored.", style="yellow")
        return
    console.print(_render_configs_table(configs))


@monitor_app.command("status", help="Show ledger and runtime status for a company.")
def monitor_status(ctx: typer.Context, entity: str = typer.Argument(...)) -> None:
    state = _get_state(ctx)
    try:
        status = state.service.monitoring_status(entity)
    except MonitorError as exc:
        _fail(exc)
    table = Table(title=f"{status['entity']} status", box=box.SIMPLE_HEAD)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for key in ("interval", "configured", "running", "started_at"):
        table.add_row(key, str(status.get(key) if status.get(key) is not None else "-"))
    console.print(table)


@complaints_app.command("show", help="Show stored complaints for a company.")
def complaints_show(
    ctx: typer.Context,
    entity: str = typer.Argument(...),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum rows (default 50)."),
) -> None:
    state = _get_state(ctx)
    try:
        records = state.service.get_stored_complaints(entity, limit)
    except MonitorError as exc:
        _fail(exc)
    console.print(_render_complaints_table(f"{entity} · {len(records)} stored", records))


@complaints_app.command("query", help="Query stored complaints with filters.")
def complaints_query(
    ctx: typer.Context,
    entity: Optional[str] = typer.Option(None, "--entity"),
    status: Optional[str] = typer.Option(None, "--status"),
    since: Optional[str] = typer.Option(None, "--since", metavar="TIMESTAMP"),
    until: Optional[str] = typer.Option(None, "--until", metavar="TIMESTAMP"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n"),
) -> None:
    state = _get_state(ctx)
    filters = ComplaintFilters(
        entity=entity,
        status=status,
        since=_parse_datetime_option(since, "--since"),
        until=_parse_datetime_option(until, "--until"),
        limit=limit,
    )
    try:
        records = state.service.query_complaints(filters)
    except MonitorError as exc:
        _fail(exc)
    console.print(_render_complaints_table(f"Query · {len(records)} found", records))


@complaints_app.command("fetch", help="Fetch complaints now without storing them.")
def complaints_fetch(
    ctx: typer.Context,
    entity: str = typer.Argument(...),
    search: bool = typer.Option(False, "--search", help="Resolve the company via site search."),
) -> None:
    state = _get_state(ctx)
    try:
        records = state.service.fetch_now(entity, search=search)
    except MonitorError as exc:
        _fail(exc)
    console.print(_render_complaints_table(f"{entity} · {len(records)} fetched (not stored)", records))


@complaints_app.command("stats", help="Show collection statistics.")
def complaints_stats(
    ctx: typer.Context, entity: Optional[str] = typer.Argument(None)
) -> None:
    state = _get_state(ctx)
    try:
        stats = state.service.statistics(entity)
    except MonitorError as exc:
        _fail(exc)
    table = Table(title=f"Statistics · {entity or 'all companies'}", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for key, value in stats.items():
        table.add_row(key, str(value if value is not None else "-"))
    console.print(table)


@complaints_app.command("purge", help="Delete complaints collected more than N days ago.")
def complaints_purge(
    ctx: typer.Context,
    days: Optional[int] = typer.Option(None, "--days", help="Age threshold (default 30)."),
) -> None:
    state = _get_state(ctx)
    try:
        removed = state.service.purge(days)
    except MonitorError as exc:
        _fail(exc)
    console.print(f"Removed {removed} complaint(s).", style="green")


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    paths = list(available_logs())
    if not paths:
        console.print("No log files yet.", style="yellow")
        return
    for path in paths:
        console.print(str(path))


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    name: str = typer.Argument("monitor", help="monitor, error or a company slug."),
    lines: int = typer.Option(50, "--lines", "-n"),
) -> None:
    matches = [path for path in available_logs() if path.stem == name]
    if not matches:
        console.print(f"Log `{name}` not found.", style="red")
        raise typer.Exit(code=1)
    for line in tail_log(matches[0], lines):
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
