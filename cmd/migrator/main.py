"""
Database Migrator Entry Point.

Applies the SQL files in `migrations/` in name order, once each.
"""
import asyncio
import sys
from pathlib import Path

import asyncpg

from config.settings import settings
from pkg.logger.logger import get_logger, setup_logging


setup_logging(level=settings.LOG_LEVEL, json_format=settings.json_logs)

logger = get_logger(__name__)


MIGRATIONS_DIR = Path(__file__).parent.parent.parent / "migrations"


async def get_applied_migrations(conn: asyncpg.Connection) -> set[str]:
    """
    Get the names of already applied migrations.

    Args:
        conn: Database connection.

    Returns:
        Set of applied migration names.
    """
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS _migrations (
            id SERIAL PRIMARY KEY,
            name VARCHAR(255) NOT NULL UNIQUE,
            applied_at TIMESTAMPTZ DEFAULT now()
        )
    """)

    rows = await conn.fetch("SELECT name FROM _migrations")
    return {row["name"] for row in rows}


async def apply_migration(
    conn: asyncpg.Connection,
    migration_path: Path,
) -> None:
    """
    Apply a single migration inside a transaction.

    Args:
        conn: Database connection.
        migration_path: Path to migration SQL file.
    """
    migration_name = migration_path.name
    logger.info("Applying migration", migration=migration_name)

    async with conn.transaction():
        await conn.execute(migration_path.read_text())
        await conn.execute(
            "INSERT INTO _migrations (name) VALUES ($1)",
            migration_name,
        )

    logger.info("Migration applied", migration=migration_name)


async def run_migrations() -> None:
    """Run all pending migrations."""
    if not MIGRATIONS_DIR.exists():
        logger.error("Migrations directory not found", path=str(MIGRATIONS_DIR))
        return

    conn = await asyncpg.connect(settings.DATABASE_URL)

    try:
        applied = await get_applied_migrations(conn)
        pending = [
            path for path in sorted(MIGRATIONS_DIR.glob("*.sql"))
            if path.name not in applied
        ]

        if not pending:
            logger.info("All migrations already applied", applied=len(applied))
            return

        logger.info("Pending migrations", count=len(pending))

        for migration_path in pending:
            await apply_migration(conn, migration_path)

        logger.info("All migrations applied successfully")

    finally:
        await conn.close()


async def rollback_migration(migration_name: str) -> None:
    """
    Forget a migration so it is applied again on the next run.

    Only the tracking row is removed; schema changes must be reverted by hand.

    Args:
        migration_name: Name of migration to roll back.
    """
    conn = await asyncpg.connect(settings.DATABASE_URL)

    try:
        result = await conn.execute(
            "DELETE FROM _migrations WHERE name = $1",
            migration_name,
        )
        if result == "DELETE 1":
            logger.info("Migration rolled back", migration=migration_name)
        else:
            logger.warning("Migration not found", migration=migration_name)
    finally:
        await conn.close()


def main() -> None:
    """Main entry point."""
    if len(sys.argv) > 1:
        command = sys.argv[1]

        if command == "rollback" and len(sys.argv) > 2:
            asyncio.run(rollback_migration(sys.argv[2]))
        else:
            print(f"Unknown command: {command}")
            print("Usage:")
            print("  python main.py                           # Run all migrations")
            print("  python main.py rollback <migration_name> # Forget a migration")
            sys.exit(1)
    else:
        asyncio.run(run_migrations())


if __name__ == "__main__":
    main()
