"""Apply the SQL migrations of the query log to the configured Postgres database.

Requires DATABASE_URL in .env or .env.local (Postgres connection string from
Supabase Dashboard → Database → Connection string).

Usage:
    python -m text_search.db.migrate
"""

import os
from pathlib import Path

from dotenv import load_dotenv

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent.parent / "migrations"


def _connection_hint(error: str) -> str:
    if "No route to host" in error or "2600:" in error:
        return (
            "\n\nThe 'Direct' connection string needs IPv6. Use the 'Session' pooler "
            "connection string instead (Project Settings → Database → Connection string)."
        )
    if "password authentication failed" in error:
        return (
            "\n\nUse the database password (not the service key) and percent-encode "
            "any # @ % or : it contains."
        )
    return ""


def run_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply every *.sql file in `migrations_dir` in lexicographic order.

    Returns:
        Names of the applied files
    """
    load_dotenv(".env")
    load_dotenv(".env.local")
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise SystemExit(
            "DATABASE_URL is not set. Add your Postgres connection string to .env or .env.local."
        )

    if not migrations_dir.is_dir():
        raise SystemExit(f"Migrations directory not found: {migrations_dir}")

    sql_files = sorted(migrations_dir.glob("*.sql"))
    if not sql_files:
        raise SystemExit(f"No .sql files found in {migrations_dir}")

    import psycopg

    applied = []
    try:
        with psycopg.connect(database_url, autocommit=True) as conn:
            with conn.cursor() as cur:
                for path in sql_files:
                    print(f"Applying {path.name}...")
                    cur.execute(path.read_text(encoding="utf-8"))
                    applied.append(path.name)
                    print(f"  OK {path.name}")
    except psycopg.OperationalError as e:
        raise SystemExit(f"Database connection failed: {e}{_connection_hint(str(e))}") from e

    print("Migrations complete.")
    return applied


if __name__ == "__main__":
    run_migrations()
