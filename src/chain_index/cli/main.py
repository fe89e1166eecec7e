"""Command line interface entry points."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import typer

from ..config import get_settings
from ..errors import ChainIndexError, MaxIdRowCountError
from ..persistence import db
from ..persistence.repo import LevelsRepository, MaxIdRepository

logger = logging.getLogger(__name__)

app = typer.Typer()


@app.callback()
def main() -> None:
    """Manage the indexer's common tables."""

    level = get_settings().log_level
    if not isinstance(logging.getLevelName(level), int):
        typer.echo(f"error: unknown LOG_LEVEL {level!r}", err=True)
        raise typer.Exit(1)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: ChainIndexError) -> None:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(1)


@app.command("generate-sql")
def generate_sql(
    dialect: str = typer.Option("postgresql", "--dialect", help="postgresql, sqlite or mysql"),
) -> None:
    """Print the DDL of the common tables."""

    try:
        typer.echo(db.generate_sql(dialect), nl=False)
    except ChainIndexError as exc:
        _fail(exc)


@app.command("init-db")
def init_db(
    database_url: Optional[str] = typer.Option(None, "--database-url"),
    reinit: bool = typer.Option(False, "--reinit", help="Drop and recreate the common tables."),
) -> None:
    """Create the common tables unless they already exist."""

    engine = db.get_engine(database_url)
    try:
        created = db.init_db(engine, reinit=reinit)
    finally:
        engine.dispose()
    typer.echo(json.dumps({"created": created}, separators=(",", ":")))


@app.command("status")
def status(
    database_url: Optional[str] = typer.Option(None, "--database-url"),
) -> None:
    """Report whether the common tables exist and what they hold."""

    engine = db.get_engine(database_url)
    summary: Dict[str, Any] = {
        "tables_exist": False,
        "max_id_rows": None,
        "max_id": None,
        "head": None,
    }
    try:
        if db.common_tables_exist(engine):
            summary["tables_exist"] = True
            with engine.connect() as conn:
                counter = MaxIdRepository(conn)
                summary["max_id_rows"] = counter.count()
                try:
                    summary["max_id"] = counter.get_max_id()
                except MaxIdRowCountError as exc:
                    logger.warning("%s", exc)
                head = LevelsRepository(conn).get_head()
                if head is not None:
                    summary["head"] = head.model_dump()
    finally:
        engine.dispose()
    typer.echo(json.dumps(summary, separators=(",", ":")))


if __name__ == "__main__":
    app()
