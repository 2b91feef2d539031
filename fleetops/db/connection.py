from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from fleetops.models.config_models import DatabaseConfig

"""PostgreSQL connection lifecycle.

One connection is opened per CLI run / HTTP request and handed to the
repositories as a cursor; nothing in fleetops keeps a module-level client.
"""

logger = logging.getLogger(__name__)


def load_env_file(path: Path = Path(".env"), override: bool = True) -> None:
    """Load .env with python-dotenv so its values beat the config file."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Build the connection string.

    Precedence:
        1. DATABASE_URL / PGDSN environment variables
        2. database.dsn from the config file
        3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back to
           the individual config fields
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_connection(db_cfg: DatabaseConfig) -> Iterator[Any]:
    """Yield a cursor on a fresh connection; commit on success, roll back on error.

    The connection is always closed on exit.
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = False
    cur = conn.cursor()
    try:
        yield cur
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        try:
            cur.close()
        finally:
            conn.close()
