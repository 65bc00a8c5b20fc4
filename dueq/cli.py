"""
dueq command line.

Usage:
    dueq enqueue task a b c          # three jobs of type "task", due now
    dueq enqueue task a --delay 60   # due in a minute
    dueq list task
    dueq remove task a
    dueq stats
    dueq work task --hold 25         # example worker: logs each job, sleeps 25 s

Connection and timing come from DUEQ_* environment variables (see
dueq.config.Settings).
"""
from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from dueq.config import get_settings
from dueq.core.events import QueueEvent
from dueq.core.queue import Queue
from dueq.core.worker import WorkItem
from dueq.domain.errors import DueQError
from dueq.factory import create_queue
from dueq.observability.logging import get_logger, setup_logging

app = typer.Typer(help="Delayed and recurring jobs on Redis", add_completion=False)
console = Console()
logger = get_logger(__name__)


@contextlib.asynccontextmanager
async def _open_queue() -> AsyncIterator[Queue]:
    async with create_queue(get_settings()) as queue:
        yield queue


def _run(coro_fn: Callable[[], Coroutine[Any, Any, None]]) -> None:
    try:
        asyncio.run(coro_fn())
    except DueQError as exc:
        console.print(f"[red]error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


@app.callback()
def main() -> None:
    setup_logging()


@app.command()
def enqueue(
    job_type: str = typer.Argument(..., help="Job type"),
    job_ids: list[str] = typer.Argument(..., help="One or more job ids"),
    delay: float = typer.Option(0.0, help="Seconds until the jobs are due"),
) -> None:
    """Schedule jobs."""

    async def _enqueue() -> None:
        async with _open_queue() as queue:
            ready_at = queue.clock() + int(delay * 1000)
            for job_id in job_ids:
                await queue.update(job_type, job_id, ready_at)
        console.print(f"Scheduled {len(job_ids)} {job_type} job(s)")

    _run(_enqueue)


@app.command()
def remove(job_type: str, job_id: str) -> None:
    """Delete one job."""

    async def _remove() -> None:
        async with _open_queue() as queue:
            await queue.remove(job_type, job_id)

    _run(_remove)


@app.command("list")
def list_(job_type: str) -> None:
    """Print job ids of a type, soonest first."""

    async def _list() -> None:
        async with _open_queue() as queue:
            for job_id in await queue.list_jobs(job_type):
                console.print(job_id)

    _run(_list)


@app.command()
def stats() -> None:
    """Show the number of jobs per type."""

    async def _stats() -> None:
        async with _open_queue() as queue:
            rows = await queue.stats()
        table = Table(title="dueq")
        table.add_column("type")
        table.add_column("count", justify="right")
        for row in rows:
            table.add_row(row.type, str(row.count))
        console.print(table)

    _run(_stats)


@app.command()
def work(
    job_type: str,
    hold: float = typer.Option(0.0, help="Seconds each job pretends to work"),
) -> None:
    """Run an example worker until interrupted."""

    async def _handler(item: WorkItem) -> None:
        logger.info("job.processing", job_type=item.type, job_id=item.id, queued_at=item.timestamp)
        await asyncio.sleep(hold)
        logger.info("job.finished", job_type=item.type, job_id=item.id)

    async def _work() -> None:
        async with _open_queue() as queue:
            queue.on(QueueEvent.ERROR, lambda err: console.print(f"[red]ERR:[/red] {err}"))
            queue.on(QueueEvent.JOB_ERROR, lambda err: console.print(f"[yellow]JOB:[/yellow] {err}"))
            console.print(f"Waiting for {job_type} work..")
            await queue.process(job_type, _handler)

    with contextlib.suppress(KeyboardInterrupt):
        _run(_work)


if __name__ == "__main__":
    app()
