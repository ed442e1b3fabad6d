"""Apply the SQL files in migrations/ to the configured Postgres database.

Requires DATABASE_URL in .env or .env.local (Postgres connection string from
Supabase Dashboard → Database → Connection string).

Usage:
    python -m src.db.migrate
"""

import os
from pathlib import Path

from dotenv import load_dotenv

_project_root = Path(__file__).resolve().parent.parent.parent
load_dotenv(_project_root / ".env")
load_dotenv(_project_root / ".env.local")

MIGRATIONS_DIR = _project_root / "migrations"


def find_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[Path]:
    """SQL files in lexicographic order (001_..., 002_...)."""
    if not migrations_dir.is_dir():
        raise SystemExit(f"Migrations directory not found: {migrations_dir}")
    sql_files = sorted(migrations_dir.glob("*.sql"))
    if not sql_files:
        raise SystemExit(f"No .sql files found in {migrations_dir}")
    return sql_files


def run_migrations(
    database_url: str | None = None, migrations_dir: Path = MIGRATIONS_DIR
) -> None:
    """Apply every migration file inside one autocommit connection."""
    database_url = database_url or os.environ.get("DATABASE_URL")
    if not database_url:
        raise SystemExit(
            "DATABASE_URL is not set. Add your Postgres connection string to .env or .env.local."
        )

    sql_files = find_migrations(migrations_dir)

    import psycopg

    try:
        with psycopg.connect(database_url, autocommit=True) as conn:
            with conn.cursor() as cur:
                for path in sql_files:
                    print(f"Applying {path.name}...")
                    cur.execute(path.read_text())
                    print(f"  OK {path.name}")
    except psycopg.OperationalError as e:
        hint = ""
        if "password authentication failed" in str(e):
            hint = (
                "\n\nUse the database password (not the service key) and "
                "percent-encode special characters in it."
            )
        raise SystemExit(f"Database connection failed: {e}{hint}") from e

    print("Migrations complete.")


if __name__ == "__main__":
    run_migrations()
