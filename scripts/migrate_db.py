# =============================================================================
# MongoDB Schema Migration Runner
# =============================================================================
# Applies the versioned migrations in services/mongodb/migrations/ in order,
# recording each applied version in the schema_migrations collection so that
# reruns are idempotent.
# =============================================================================

import argparse
import importlib.util
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from pymongo import MongoClient
from pymongo.database import Database

from libs.models import MongoSettings

logger = logging.getLogger("migrate_db")

MIGRATIONS_COLLECTION = "schema_migrations"
DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "services" / "mongodb" / "migrations"


def discover_migrations(migrations_dir: Path) -> list[tuple[str, Path]]:
    """
    Discover migration files named ``NNN_*.py``.

    Returns:
        List of (version, file_path) tuples, sorted by version

    Raises:
        ValueError: If the directory is missing or two files share a version
    """
    if not migrations_dir.exists():
        raise ValueError(f"Migrations directory does not exist: {migrations_dir}")

    migrations = []
    seen_versions = set()

    for file_path in migrations_dir.glob("*.py"):
        filename = file_path.name
        if filename.startswith("__"):
            continue

        version = filename[0:3]
        if not version.isdigit():
            logger.warning("Skipping '%s': does not start with a 3-digit version", filename)
            continue

        if version in seen_versions:
            raise ValueError(f"Duplicate migration version '{version}' found in '{filename}'")

        seen_versions.add(version)
        migrations.append((version, file_path))

    # Zero-padded versions sort lexicographically
    migrations.sort(key=lambda x: x[0])
    return migrations


def load_migration_module(file_path: Path) -> tuple[str, Callable[[Database], None]]:
    """
    Load a migration module and return its VERSION and up() function.

    Raises:
        ImportError: If the file cannot be imported
        ValueError: If VERSION or up() is missing or malformed
    """
    spec = importlib.util.spec_from_file_location(f"migration_{file_path.stem}", file_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load migration module from {file_path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    version = getattr(module, "VERSION", None)
    if version is None:
        raise ValueError(f"Migration '{file_path.name}' missing VERSION constant")
    if not isinstance(version, str):
        raise ValueError(f"Migration '{file_path.name}' VERSION must be a string, got {type(version).__name__}")

    up_func = getattr(module, "up", None)
    if up_func is None:
        raise ValueError(f"Migration '{file_path.name}' missing up() function")
    if not callable(up_func):
        raise ValueError(f"Migration '{file_path.name}' up must be callable, got {type(up_func).__name__}")

    return version, up_func


def ensure_schema_migrations_collection(db: Database) -> None:
    if MIGRATIONS_COLLECTION not in db.list_collection_names():
        db.create_collection(MIGRATIONS_COLLECTION)
    db[MIGRATIONS_COLLECTION].create_index("version", unique=True)


def get_applied_versions(db: Database) -> set[str]:
    applied = db[MIGRATIONS_COLLECTION].find({}, {"version": 1})
    return {doc["version"] for doc in applied}


def apply_migration(db: Database, version: str, up_func: Callable[[Database], None]) -> None:
    """
    Apply one migration and record it.

    A failing migration is not recorded, so it is retried on the next run.
    """
    start_time = time.monotonic()
    up_func(db)
    duration_ms = int((time.monotonic() - start_time) * 1000)
    db[MIGRATIONS_COLLECTION].insert_one({
        "version": version,
        "applied_at": datetime.now(timezone.utc),
        "duration_ms": duration_ms,
    })
    logger.info("Applied migration %s (took %dms)", version, duration_ms)


def run_migrations(db: Database, migrations_dir: Path, dry_run: bool = False) -> list[str]:
    """
    Apply every pending migration in version order.

    Returns:
        Versions applied (or that would be applied, with ``dry_run``)
    """
    ensure_schema_migrations_collection(db)
    applied_versions = get_applied_versions(db)
    pending = []

    for version, file_path in discover_migrations(migrations_dir):
        if version in applied_versions:
            logger.debug("Skipping migration %s: already applied", version)
            continue

        migration_version, up_func = load_migration_module(file_path)
        if migration_version != version:
            raise ValueError(
                f"Migration '{file_path.name}' VERSION '{migration_version}' "
                f"does not match filename version '{version}'"
            )

        if dry_run:
            logger.info("Would apply migration %s from %s", version, file_path.name)
        else:
            apply_migration(db, version, up_func)
        pending.append(version)

    return pending


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Apply MongoDB schema migrations")
    parser.add_argument("--migrations-dir", type=Path, default=DEFAULT_MIGRATIONS_DIR)
    parser.add_argument("--dry-run", action="store_true", help="List pending migrations only")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    settings = MongoSettings()
    client = MongoClient(settings.connection_string, serverSelectionTimeoutMS=10000)
    try:
        versions = run_migrations(client[settings.database], args.migrations_dir, dry_run=args.dry_run)
    except Exception:
        logger.exception("Migration failed")
        return 1
    finally:
        client.close()

    logger.info("%d migration(s) %s", len(versions), "pending" if args.dry_run else "applied")
    return 0


if __name__ == "__main__":
    sys.exit(main())
