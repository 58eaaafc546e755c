"""Database connection and migrations for the DuckDB ledger."""

import logging
import os
from pathlib import Path

import duckdb

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def get_db_path() -> str:
    """Get the database file path from environment or default."""
    return os.getenv("FINCHAT_DB_PATH", "data/finchat.duckdb")


def get_connection(db_path: str | None = None) -> duckdb.DuckDBPyConnection:
    """Get a DuckDB connection.

    Args:
        db_path: Path to the database file. If None, uses get_db_path().
                If ":memory:", uses in-memory database.

    Returns:
        DuckDB connection object.
    """
    if db_path is None:
        db_path = get_db_path()

    # Ensure parent directory exists for file-based databases
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return duckdb.connect(db_path)


def run_migrations(conn: duckdb.DuckDBPyConnection) -> list[str]:
    """Apply pending .sql migrations in name order.

    Returns:
        Versions applied by this call
    """
    migration_files = sorted(MIGRATIONS_DIR.glob("*.sql"))

    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            applied_at TIMESTAMP NOT NULL DEFAULT current_timestamp
        )
    """)

    applied = {row[0] for row in conn.execute("SELECT version FROM schema_migrations").fetchall()}

    newly_applied = []
    for migration_file in migration_files:
        version = migration_file.stem  # e.g., "001_initial_schema"
        if version in applied:
            continue

        conn.execute(migration_file.read_text(encoding="utf-8"))
        conn.execute("INSERT INTO schema_migrations (version) VALUES (?)", [version])
        logger.info("Applied migration: %s", version)
        newly_applied.append(version)

    return newly_applied


def init_db(db_path: str | None = None) -> duckdb.DuckDBPyConnection:
    """Open a connection and bring the schema up to date."""
    conn = get_connection(db_path=db_path)
    run_migrations(conn)
    return conn
