"""
Apply the bundled SQL migrations to the SQLite task database.

Each file in the migrations/ directory runs once, in file name order; applied
names are recorded in the schema_migrations table.

Usage:
    python -m task_api.migrate [DB_PATH]

DB_PATH defaults to SQLITE_DB_PATH from the environment.
"""
from __future__ import annotations

import sqlite3
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from .settings import get_settings

MIGRATIONS_DIR = Path(__file__).with_name("migrations")


def get_migrations(directory: Path = MIGRATIONS_DIR) -> List[Tuple[str, str]]:
    """Return (file name, SQL) pairs for every *.sql file in directory, sorted by name."""
    return [(p.name, p.read_text(encoding="utf-8").strip()) for p in sorted(directory.glob("*.sql"))]


# PUBLIC_INTERFACE
def migrate(conn: sqlite3.Connection, directory: Path = MIGRATIONS_DIR) -> List[str]:
    """
    Run pending migrations on an open connection and return the names applied.
    """
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations (name TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
    )
    done = {row[0] for row in conn.execute("SELECT name FROM schema_migrations")}

    applied = []
    for name, sql in get_migrations(directory):
        if name in done:
            continue
        conn.executescript(sql)
        conn.execute(
            "INSERT INTO schema_migrations (name, applied_at) VALUES (?, datetime('now'))", (name,)
        )
        conn.commit()
        logger.info("Migrated: {}", name)
        applied.append(name)
    return applied


def main(argv: Optional[List[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    db_path = args[0] if args else get_settings().sqlite_db_path
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        applied = migrate(conn)
    finally:
        conn.close()
    if not applied:
        logger.info("Database {} is up to date", db_path)


if __name__ == "__main__":
    main()
