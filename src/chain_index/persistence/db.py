"""Engine creation, DDL rendering and lifecycle of the common tables.

The database URL is controlled through environment variables (see
``chain_index.config``).  When ``DATABASE_URL`` is unset a SQLite file under
``DB_SQLITE_PATH`` is used, which keeps local runs and the test suite free of
any server.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

from sqlalchemy import create_engine, func, insert, inspect, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Connection, Dialect, Engine, make_url
from sqlalchemy.schema import CreateIndex, CreateTable

from ..config import get_settings
from ..errors import UnknownDialectError
from .tables import COMMON_TABLES, MAX_ID_SEED, levels, max_id, metadata

logger = logging.getLogger(__name__)

_DIALECTS = {
    "postgresql": postgresql.dialect,
    "sqlite": sqlite.dialect,
    "mysql": mysql.dialect,
}


def _resolve_url() -> str:
    settings = get_settings()
    if settings.database_url:
        return settings.database_url
    return f"sqlite:///{settings.db_sqlite_path}"


def _connect_args(url: str) -> Dict[str, Any]:
    settings = get_settings()
    if not settings.db_ssl or make_url(url).get_backend_name() != "postgresql":
        return {}
    args: Dict[str, Any] = {"sslmode": "require"}
    if settings.db_ca_cert:
        args["sslmode"] = "verify-ca"
        args["sslrootcert"] = settings.db_ca_cert
    return args


def get_engine(url: str | None = None) -> Engine:
    """Create a SQLAlchemy engine using the provided or resolved URL."""

    url = url or _resolve_url()
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        url,
        echo=get_settings().db_echo,
        connect_args=_connect_args(url),
    )


def _get_dialect(name: str) -> Dialect:
    try:
        return _DIALECTS[name]()
    except KeyError:
        raise UnknownDialectError(name) from None


def generate_sql(dialect: str = "postgresql") -> str:
    """Render the DDL and seed insert of the common tables for ``dialect``."""

    d = _get_dialect(dialect)
    statements: List[str] = []
    for table in (levels, max_id):
        statements.append(str(CreateTable(table).compile(dialect=d)).strip())
        for index in sorted(table.indexes, key=lambda ix: ix.name):
            statements.append(str(CreateIndex(index).compile(dialect=d)).strip())
    seed = insert(max_id).values(max_id=MAX_ID_SEED)
    statements.append(
        str(seed.compile(dialect=d, compile_kwargs={"literal_binds": True})).strip()
    )
    return "\n\n".join(f"{stmt};" for stmt in statements) + "\n"


def common_tables_exist(engine: Engine | Connection) -> bool:
    """Return ``True`` when every common table is present."""

    inspector = inspect(engine)
    return all(inspector.has_table(name) for name in COMMON_TABLES)


def create_common_tables(engine: Engine) -> None:
    """Create the common tables and seed ``max_id``.

    ``max_id`` is only seeded when this call creates it, so a partially
    initialised database never ends up with a second counter row.  Backends
    without transactional DDL (pysqlite) keep the created tables when the
    seed insert fails; ``init_db`` seeds an empty ``max_id`` on its next run.
    """

    with engine.begin() as conn:
        seed_max_id = not inspect(conn).has_table("max_id")
        metadata.create_all(conn)
        if seed_max_id:
            conn.execute(insert(max_id).values(max_id=MAX_ID_SEED))
    logger.info("common tables set up (max_id seeded: %s)", seed_max_id)


def _seed_empty_max_id(engine: Engine) -> bool:
    with engine.begin() as conn:
        if conn.execute(select(func.count()).select_from(max_id)).scalar_one():
            return False
        conn.execute(insert(max_id).values(max_id=MAX_ID_SEED))
    logger.warning("max_id was empty, seeded with %s", MAX_ID_SEED)
    return True


def drop_common_tables(engine: Engine) -> None:
    with engine.begin() as conn:
        metadata.drop_all(conn)
    logger.info("common tables dropped")


def init_db(engine: Engine, reinit: bool = False) -> bool:
    """Make sure the common tables exist.

    With ``reinit`` all rows are destroyed and the tables are recreated.
    An existing but empty ``max_id`` gets its seed row.  Returns whether the
    tables were (re)created by this call.
    """

    if reinit:
        logger.warning("re-initialising common tables, existing rows will be destroyed")
        drop_common_tables(engine)
    elif common_tables_exist(engine):
        logger.info("common tables already present, skipping set up")
        _seed_empty_max_id(engine)
        return False
    create_common_tables(engine)
    return True


@contextmanager
def session(url: str | None = None) -> Iterator[Connection]:
    """Yield a connection inside a transaction on an initialised database."""

    engine = get_engine(url)
    try:
        init_db(engine)
        with engine.begin() as conn:
            yield conn
    finally:
        engine.dispose()


__all__ = [
    "get_engine",
    "generate_sql",
    "common_tables_exist",
    "create_common_tables",
    "drop_common_tables",
    "init_db",
    "session",
]
