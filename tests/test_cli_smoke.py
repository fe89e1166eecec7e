import json
import os
import subprocess
import sys
from pathlib import Path

from sqlalchemy import insert

from chain_index.persistence import LevelRecord, LevelsRepository, get_engine
from chain_index.persistence.tables import levels, max_id

PYTHONPATH = str(Path(__file__).resolve().parents[1] / "src")


def _run(*args: str, **env_overrides: str) -> subprocess.CompletedProcess:
    env = {**os.environ, "PYTHONPATH": PYTHONPATH, "LOG_LEVEL": "WARNING"}
    env.pop("DATABASE_URL", None)
    env.update(env_overrides)
    return subprocess.run(
        [sys.executable, "-m", "chain_index.cli.main", *args],
        capture_output=True,
        text=True,
        env=env,
    )


def test_generate_sql_smoke() -> None:
    result = _run("generate-sql")
    assert result.returncode == 0, result.stderr
    assert "CREATE UNIQUE INDEX levels__level" in result.stdout
    assert "INSERT INTO max_id (max_id) VALUES (1);" in result.stdout


def test_generate_sql_unknown_dialect() -> None:
    result = _run("generate-sql", "--dialect", "nosuchdb")
    assert result.returncode == 1
    assert "unknown SQL dialect" in result.stderr


def test_init_db_and_status(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'cli.sqlite'}"

    status = _run("status", "--database-url", url)
    assert status.returncode == 0, status.stderr
    assert json.loads(status.stdout)["tables_exist"] is False

    first = _run("init-db", "--database-url", url)
    assert first.returncode == 0, first.stderr
    assert json.loads(first.stdout) == {"created": True}

    second = _run("init-db", "--database-url", url)
    assert json.loads(second.stdout) == {"created": False}

    engine = get_engine(url)
    try:
        with engine.begin() as conn:
            LevelsRepository(conn).save_level(LevelRecord(level=12, hash="BLtwelve"))
    finally:
        engine.dispose()

    status = _run("status", "--database-url", url)
    payload = json.loads(status.stdout)
    assert payload["tables_exist"] is True
    assert payload["max_id_rows"] == 1
    assert payload["max_id"] == 1
    assert payload["head"]["level"] == 12
    assert payload["head"]["hash"] == "BLtwelve"


def test_status_flags_extra_max_id_rows(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'cli.sqlite'}"
    assert _run("init-db", "--database-url", url).returncode == 0

    engine = get_engine(url)
    try:
        with engine.begin() as conn:
            conn.execute(insert(max_id).values(max_id=5))
    finally:
        engine.dispose()

    status = _run("status", "--database-url", url)
    assert status.returncode == 0, status.stderr
    payload = json.loads(status.stdout)
    assert payload["max_id_rows"] == 2
    assert payload["max_id"] is None
    assert "expected exactly 1" in status.stderr

    reinit = _run("init-db", "--database-url", url, "--reinit")
    assert json.loads(reinit.stdout) == {"created": True}
    assert json.loads(_run("status", "--database-url", url).stdout)["max_id"] == 1


def test_unknown_log_level_is_reported() -> None:
    result = _run("generate-sql", LOG_LEVEL="VERBOSE")
    assert result.returncode == 1
    assert "unknown LOG_LEVEL 'VERBOSE'" in result.stderr
    assert "Traceback" not in result.stderr


def test_status_reports_overlong_stored_hash(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'cli.sqlite'}"
    assert _run("init-db", "--database-url", url).returncode == 0

    engine = get_engine(url)
    try:
        with engine.begin() as conn:
            conn.execute(insert(levels).values({"_level": 9, "hash": "B" * 61}))
    finally:
        engine.dispose()

    status = _run("status", "--database-url", url)
    assert status.returncode == 0, status.stderr
    payload = json.loads(status.stdout)
    assert payload["head"]["level"] == 9
    assert payload["head"]["hash"] == "B" * 61
