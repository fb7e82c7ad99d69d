from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
import uvicorn

from priceport.config import get_settings
from priceport.domain.errors import PriceportError
from priceport.infrastructure.db_factory import open_pool
from priceport.infrastructure.gateway import PriceGateway
from priceport.orchestrator import ARCHIVE_MEDIA_TYPE, PriceTransfer
from priceport.reporter import print_records_preview, print_upload_stats
from priceport.utils.logging import configure_logging

app = typer.Typer(help="priceport: bulk import/export of price records.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@contextmanager
def _gateway(dsn: Optional[str] = None) -> Iterator[PriceGateway]:
    settings = get_settings()
    pool = open_pool(settings, dsn_override=dsn)
    try:
        yield PriceGateway(pool, export_batch_size=settings.export_batch_size)
    finally:
        pool.close()


def _fail(exc: PriceportError) -> None:
    typer.echo(f"Error ({type(exc).__name__}): {exc.message}", err=True)
    raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size}) "
        f"statement_timeout={settings.db_statement_timeout_ms}ms | "
        f"api={settings.api_host}:{settings.api_port} env={settings.app_env}"
    )


@app.command("init-db")
def init_db(
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
) -> None:
    """
    Create the prices table if it does not exist.
    """
    _setup_logging()
    try:
        with _gateway(dsn) as gateway:
            gateway.ensure_schema()
    except PriceportError as exc:
        _fail(exc)
    typer.echo("Schema ready.")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from settings)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default from settings)."),
) -> None:
    """
    Run the HTTP service.
    """
    from priceport.web.app import create_app

    settings = get_settings()
    _setup_logging()
    uvicorn.run(
        create_app(settings=settings),
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_config=None,
    )


@app.command("import-archive")
def import_archive(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Zip archive to ingest."),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
) -> None:
    """
    Ingest a local zip archive exactly as POST /api/v0/prices would.
    """
    _setup_logging()
    body = path.read_bytes()
    try:
        with _gateway(dsn) as gateway:
            stats = PriceTransfer(gateway).handle_ingest(ARCHIVE_MEDIA_TYPE, body)
    except PriceportError as exc:
        _fail(exc)
    print_upload_stats(stats, source=path.name)


@app.command("export-archive")
def export_archive(
    output: Path = typer.Argument(Path("prices.zip"), help="Where to write the archive."),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
) -> None:
    """
    Write every stored record to a zip archive, as GET /api/v0/prices would.
    """
    _setup_logging()
    try:
        with _gateway(dsn) as gateway:
            archive = PriceTransfer(gateway).handle_export()
    except PriceportError as exc:
        _fail(exc)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(archive.content)
    typer.echo(f"Wrote {archive.size:,} bytes -> {output}")


@app.command()
def show(
    limit: int = typer.Option(10, "--limit", "-n", help="Rows to display."),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
) -> None:
    """
    Preview stored records in insertion order.
    """
    _setup_logging()
    try:
        with _gateway(dsn) as gateway:
            print_records_preview(gateway.iter_all(), limit=limit)
    except PriceportError as exc:
        _fail(exc)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
