"""
streamput CLI.

Usage:
    streamput upload https://example.com/feed.xml feeds/feed.xml --bucket my-bucket
    streamput upload ./dump.sql backups/dump.sql --workers 8 --part-size-mb 16
    streamput abort backups/dump.sql UPLOAD_ID --bucket my-bucket
    streamput config
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from streamput.config import MIB, Settings, configure_settings
from streamput.exceptions import StoreError, UploadPhase
from streamput.logging import setup_logging

console = Console()
err_console = Console(stderr=True)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _build_settings(ctx: click.Context, **overrides: Any) -> Settings:
    """Merge CLI options over environment settings."""
    values = {k: v for k, v in {**ctx.obj, **overrides}.items() if v is not None}
    try:
        return configure_settings(**values)
    except ValidationError as e:
        err_console.print("[red]Invalid configuration:[/red]")
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"]) or "settings"
            err_console.print(f"  [yellow]{loc}[/yellow]: {err['msg']}")
        raise SystemExit(2)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (env: STREAMPUT_LOG_LEVEL)",
)
@click.option("--json-logs", "log_json", is_flag=True, help="Log JSON lines")
@click.version_option(package_name="streamput")
@click.pass_context
def main(ctx: click.Context, log_level: str | None, log_json: bool) -> None:
    """streamput: stream large remote files into object storage."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level.upper() if log_level else None
    ctx.obj["log_json"] = True if log_json else None


# =============================================================================
# Upload Command
# =============================================================================


@main.command()
@click.argument("source")
@click.argument("key")
@click.option("--bucket", "-b", "s3_bucket", help="Target bucket (env: STREAMPUT_S3_BUCKET)")
@click.option("--region", "s3_region", help="S3 region")
@click.option("--endpoint-url", "s3_endpoint_url", help="S3-compatible endpoint URL")
@click.option("--part-size-mb", type=int, help="Part size in MiB (min 5)")
@click.option("--workers", "-w", "worker_count", type=int, help="Concurrent part uploads")
@click.option("--retries", "retry_attempts", type=int, help="Attempts per part")
@click.option("--timeout", "-t", "upload_timeout", type=float, help="Upload deadline in seconds")
@click.option("--no-progress", is_flag=True, help="Hide the progress bar")
@click.pass_context
def upload(
    ctx: click.Context,
    source: str,
    key: str,
    part_size_mb: int | None,
    no_progress: bool,
    **options: Any,
) -> None:
    """Upload a URL or local file to KEY.

    SOURCE is an http(s) URL or a local path. The file is streamed in parts
    and never held in memory as a whole.

    Examples:

        streamput upload https://example.com/feed.xml feeds/feed.xml -b my-bucket

        streamput upload ./dump.sql backups/dump.sql -b my-bucket -w 8
    """
    settings = _build_settings(
        ctx,
        part_size=part_size_mb * MIB if part_size_mb is not None else None,
        **options,
    )
    setup_logging(settings.log_level, json=settings.log_json)

    if not settings.s3_bucket:
        err_console.print("[red]Error:[/red] Set --bucket or STREAMPUT_S3_BUCKET")
        raise SystemExit(1)

    result = asyncio.run(_upload_async(settings, source, key, show_progress=not no_progress))

    if result.success:
        console.print(f"[green]Uploaded[/green] s3://{settings.s3_bucket}/{result.key}")
        console.print(result.metrics.summary())
        raise SystemExit(0)

    err_console.print(f"[red]Upload failed:[/red] {result.error}")
    if result.phase is not None:
        err_console.print(f"  phase: {result.phase.value}")
    if result.part_number is not None:
        err_console.print(f"  part: {result.part_number}")
    if result.session_id and result.phase is UploadPhase.COMPLETE:
        err_console.print(f"  upload {result.session_id} is still open; to discard it run:")
        err_console.print(f"  streamput abort {result.key} {result.session_id}", soft_wrap=True)
    raise SystemExit(1)


async def _upload_async(settings: Settings, source: str, key: str, show_progress: bool) -> Any:
    """Async upload implementation."""
    from streamput.upload import AsyncStreamUploader

    uploader = AsyncStreamUploader(settings=settings)

    if not show_progress:
        if _is_url(source):
            return await uploader.url(source, key)
        return await uploader.file(source, key)

    with Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeElapsedColumn(),
        console=err_console,
        transient=True,
    ) as progress:
        task_id = progress.add_task(key, total=None)

        def on_progress(uploaded: int, total: int | None) -> None:
            progress.update(task_id, completed=uploaded, total=total)

        if _is_url(source):
            return await uploader.url(source, key, on_progress=on_progress)
        return await uploader.file(source, key, on_progress=on_progress)


# =============================================================================
# Abort Command
# =============================================================================


@main.command()
@click.argument("key")
@click.argument("upload_id")
@click.option("--bucket", "-b", "s3_bucket", help="Bucket (env: STREAMPUT_S3_BUCKET)")
@click.option("--region", "s3_region", help="S3 region")
@click.option("--endpoint-url", "s3_endpoint_url", help="S3-compatible endpoint URL")
@click.pass_context
def abort(ctx: click.Context, key: str, upload_id: str, **options: Any) -> None:
    """Abort an open multipart upload and free its stored parts."""
    settings = _build_settings(ctx, **options)
    setup_logging(settings.log_level, json=settings.log_json)

    if not settings.s3_bucket:
        err_console.print("[red]Error:[/red] Set --bucket or STREAMPUT_S3_BUCKET")
        raise SystemExit(1)

    from streamput.stores.s3 import S3ObjectStore

    store = S3ObjectStore(
        settings.s3_bucket,
        region=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
    )
    try:
        asyncio.run(store.abort_upload(upload_id, key))
    except StoreError as e:
        err_console.print(f"[red]Abort failed:[/red] {e}")
        raise SystemExit(1)
    console.print(f"[green]Aborted[/green] upload {upload_id} for {key}")


# =============================================================================
# Config Command
# =============================================================================


@main.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Show effective settings (environment plus CLI options)."""
    settings = _build_settings(ctx)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", width=24)
    table.add_column("Value")

    for name, value in settings.model_dump().items():
        if name == "part_size" and isinstance(value, int):
            shown = f"{value:,} ({value / MIB:g} MiB)"
        else:
            shown = "-" if value is None else str(value)
        table.add_row(name, shown)
    table.add_row("queue_size", str(settings.queue_size))

    console.print(table)


if __name__ == "__main__":
    sys.exit(main())
