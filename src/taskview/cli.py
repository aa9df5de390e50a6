"""taskview CLI - browse and edit tasks in the remote store."""

import asyncio
import json
import logging
import sys
from datetime import date

import click

from .adapters.rest_api import RestTaskAdapter
from .board import TaskBoard
from .config import Config, load_config
from .coordinator import MutationCoordinator, MutationResult
from .core.pagination import page_window
from .core.sorting import SortDirection, SortField, SortSpec
from .core.tasks import EffectiveStatus, Priority, Task, TaskDraft, TaskStatus, resolve_status
from .core.calendar import month_grid

STATUS_CHOICES = [s.value for s in EffectiveStatus]
STORED_STATUS_CHOICES = [s.value for s in TaskStatus]
PRIORITY_CHOICES = [p.value for p in Priority]
SORT_CHOICES = [f.value for f in SortField]


def _coordinator(config: Config) -> MutationCoordinator:
    return MutationCoordinator(
        RestTaskAdapter(config),
        cooldown=config.cooldown_seconds,
        timeout=config.request_timeout,
    )


async def _load(config: Config) -> MutationCoordinator:
    """Build a coordinator and fill its cache from the server."""
    coordinator = _coordinator(config)
    result = await coordinator.refresh()
    if not result.ok:
        raise click.ClickException(str(result.error))
    return coordinator


def _report(result: MutationResult, success: str) -> None:
    if result.ok:
        click.echo(success)
        return
    click.echo(f"Error: {result.error or result.outcome.value}", err=True)
    sys.exit(1)


def _task_json(t: Task, as_of: date) -> dict:
    return {
        "id": t.id,
        "display_id": t.label,
        "priority": t.priority.value,
        "status": t.status.value,
        "effective_status": resolve_status(t, as_of).value,
        "deadline": t.deadline.isoformat() if t.deadline else None,
        "start_time": t.start_time.isoformat() if t.start_time else None,
        "hours": t.hours,
        "details": t.details,
        "created_at": t.created_at.isoformat(),
    }


def _task_line(t: Task, as_of: date) -> str:
    status = resolve_status(t, as_of).value
    due = f"due {t.deadline}" if t.deadline else "no deadline"
    return f"{t.label:>10}  [{t.priority.value:6}] {status:11} {due}  {t.hours}h  {t.details}"


def _parse_day(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Expected YYYY-MM-DD, got {value!r}")


@click.group()
@click.version_option(package_name="taskview")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """taskview - task list client."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command("list")
@click.option("--search", "-s", default="", help="Text to find in details or id")
@click.option("--status", type=click.Choice(STATUS_CHOICES), default=None)
@click.option("--priority", type=click.Choice(PRIORITY_CHOICES), default=None)
@click.option("--sort", "sort_field", type=click.Choice(SORT_CHOICES), default=None)
@click.option("--asc/--desc", "ascending", default=None, help="Sort direction")
@click.option("--page", "-p", default=1, show_default=True)
@click.option("--date", "-d", "on_date", default=None, help="Only tasks due on YYYY-MM-DD")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_tasks(search, status, priority, sort_field, ascending, page, on_date, as_json):
    """List tasks, active ones first."""
    config = load_config()
    coordinator = asyncio.run(_load(config))
    today = date.today()

    board = TaskBoard(coordinator.cache, config.page_size, config.default_sort())
    board.search(search)
    board.filter_status(status)
    board.filter_priority(priority)
    board.select_date(_parse_day(on_date))
    if sort_field or ascending is not None:
        field = SortField(sort_field) if sort_field else board.sort_spec.field
        direction = SortDirection.DESC if ascending is False else SortDirection.ASC
        board.sort_spec = SortSpec(field, direction)
    board.page = page

    result = board.visible_page(today)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "tasks": [_task_json(t, today) for t in result.items],
                    "page": result.page,
                    "total_items": result.total_items,
                    "total_pages": result.total_pages,
                },
                indent=2,
            )
        )
        return

    if not result.items:
        click.echo("No tasks." if result.total_items == 0 else f"No page {page}.")
        return

    for task in result.items:
        click.echo(_task_line(task, today))
    pages = " ".join(
        f"[{n}]" if n == result.page else str(n)
        for n in page_window(result.page, result.total_pages)
    )
    click.echo(f"\nPage {result.page}/{result.total_pages} ({result.total_items} tasks)  {pages}")


@main.command()
def today():
    """Count active tasks due today."""
    config = load_config()
    coordinator = asyncio.run(_load(config))
    board = TaskBoard(coordinator.cache, config.page_size)
    count = board.due_today_count()
    click.echo(f"{count} task{'s' if count != 1 else ''} due today.")


@main.command()
@click.option("--month", "-m", default=None, help="Month to show (YYYY-MM)")
@click.option("--date", "-d", "on_date", default=None, help="List tasks due on YYYY-MM-DD")
def calendar(month: str | None, on_date: str | None):
    """Show a month of deadlines, or the tasks due on one date."""
    config = load_config()
    coordinator = asyncio.run(_load(config))
    board = TaskBoard(coordinator.cache, config.page_size, config.default_sort())
    today_ = date.today()

    day = _parse_day(on_date)
    if day is not None:
        tasks = board.calendar.query(day, sort_spec=board.sort_spec, as_of=today_)
        if not tasks:
            click.echo(f"Nothing due on {day.strftime('%A, %B %d')}.")
            return
        click.echo(f"### {day.strftime('%A, %B %d')}")
        for task in tasks:
            click.echo(_task_line(task, today_))
        return

    if month:
        try:
            year, mon = (int(part) for part in month.split("-"))
            if not 1 <= mon <= 12:
                raise ValueError(mon)
        except ValueError:
            raise click.BadParameter(f"Expected YYYY-MM, got {month!r}", param_hint="--month")
    else:
        year, mon = today_.year, today_.month

    counts = board.calendar.dates_in_month(year, mon)
    click.echo(date(year, mon, 1).strftime("%B %Y").center(35))
    click.echo("  Sun  Mon  Tue  Wed  Thu  Fri  Sat")
    for week in month_grid(year, mon):
        cells = []
        for cell in week:
            if cell is None:
                cells.append("     ")
            else:
                mark = "*" if counts.get(cell) else " "
                cells.append(f"{cell.day:4}{mark}")
        click.echo("".join(cells))
    if counts:
        click.echo(f"\n* {sum(counts.values())} task(s) due on {len(counts)} day(s)")


@main.command()
@click.argument("details")
@click.option("--deadline", "-d", required=True, help="Due date (YYYY-MM-DD)")
@click.option("--priority", type=click.Choice(PRIORITY_CHOICES), default=Priority.MEDIUM.value)
@click.option("--hours", type=int, default=1, show_default=True)
@click.option("--status", type=click.Choice(STORED_STATUS_CHOICES), default=TaskStatus.PENDING.value)
@click.option("--start", default=None, help="Start date (YYYY-MM-DD)")
def add(details, deadline, priority, hours, status, start):
    """Create a task."""
    config = load_config()
    draft = TaskDraft(
        details=details,
        deadline=_parse_day(deadline),
        priority=Priority(priority),
        status=TaskStatus(status),
        hours=hours,
        start_time=_parse_day(start),
    )

    async def run() -> MutationResult:
        return await _coordinator(config).create(draft)

    result = asyncio.run(run())
    _report(result, f"Created task {result.task.label if result.task else ''}".strip())


@main.command()
@click.argument("task_id")
@click.option("--details", default=None)
@click.option("--deadline", default=None, help="Due date (YYYY-MM-DD)")
@click.option("--priority", type=click.Choice(PRIORITY_CHOICES), default=None)
@click.option("--hours", type=int, default=None)
@click.option("--status", type=click.Choice(STORED_STATUS_CHOICES), default=None)
@click.option("--start", default=None, help="Start date (YYYY-MM-DD)")
def edit(task_id, details, deadline, priority, hours, status, start):
    """Change fields of a task."""
    patch = {
        key: value
        for key, value in {
            "details": details,
            "deadline": deadline,
            "priority": priority,
            "hours": hours,
            "status": status,
            "start_time": start,
        }.items()
        if value is not None
    }
    if not patch:
        click.echo("Nothing to change.")
        return

    config = load_config()

    async def run() -> MutationResult:
        coordinator = await _load(config)
        return await coordinator.update(task_id, patch)

    _report(asyncio.run(run()), f"Updated task {task_id}")


@main.command()
@click.argument("task_id")
def rm(task_id):
    """Delete a task."""
    config = load_config()

    async def run() -> MutationResult:
        coordinator = await _load(config)
        return await coordinator.delete(task_id)

    _report(asyncio.run(run()), f"Deleted task {task_id}")
