"""
Versioned schema migrations for the inventory database.

Migrations are ``vNNN_name.sql`` files next to this module. Each one runs
in its own transaction together with its row in ``schema_migrations``, so a
failing script leaves no partial schema behind. A file copy of the database
is taken first and restored if any step fails.

Usage:
    buffet-migrate                 # apply pending migrations
    buffet-migrate --status
    buffet-migrate --verify
"""

import argparse
import asyncio
import hashlib
import re
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from buffet.config import configure_logging, get_logger, get_settings
from buffet.core.exceptions import ConfigurationError

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

MIGRATION_FILENAME = re.compile(r"^v(\d+)_(\w+)\.sql$")

REQUIRED_TABLES = [
    "materials",
    "audit_log",
    "purchase_orders",
    "purchase_order_items",
    "inventory_counts",
    "inventory_count_items",
    "drinks",
    "drink_recipe_items",
    "schema_migrations",
]

# The ledger is append-only; these triggers enforce it in the database
APPEND_ONLY_TRIGGERS = ["audit_log_no_update", "audit_log_no_delete"]


@dataclass(frozen=True)
class MigrationInfo:
    """One migration script on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = MIGRATION_FILENAME.match(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")

        checksum = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=checksum)

    def read_sql(self) -> str:
        return self.path.read_text(encoding="utf-8")


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


@dataclass
class IntegrityCheck:
    check: str
    passed: bool
    detail: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"check": self.check, "status": "PASS" if self.passed else "FAIL", **self.detail}


def discover_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Migration scripts in ``migrations_dir`` ordered by version."""
    migrations = []
    for path in migrations_dir.glob("v*.sql"):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return sorted(migrations, key=lambda m: int(m.version))


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to the checksum recorded when they ran."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied, key=int) if applied else None


def create_backup(db_path: Path) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


class SchemaMigrator:
    """Applies pending migrations to one database file."""

    def __init__(self, db_path: Path, migrations_dir: Path = MIGRATIONS_DIR):
        self.db_path = db_path
        self.migrations_dir = migrations_dir

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")
        return conn

    async def apply_one(
        self, conn: aiosqlite.Connection, migration: MigrationInfo
    ) -> MigrationResult:
        logger.info("applying_migration", version=migration.version, name=migration.name)
        started = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - started) * 1000)

        try:
            # executescript commits anything pending, so the script opens its own transaction
            await conn.executescript(f"BEGIN;\n{migration.read_sql()}\n;")
            await conn.execute(
                """
                INSERT OR REPLACE INTO schema_migrations
                    (version, name, checksum, execution_time_ms)
                VALUES (?, ?, ?, ?)
                """,
                (migration.version, migration.name, migration.checksum, elapsed_ms()),
            )
            cursor = await conn.execute("PRAGMA foreign_key_check")
            violations = await cursor.fetchall()
            if violations:
                raise aiosqlite.IntegrityError(
                    f"Foreign key violations after migration: {len(violations)}"
                )
            await conn.commit()
        except aiosqlite.Error as e:
            if conn.in_transaction:
                await conn.rollback()
            logger.error(
                "migration_failed",
                version=migration.version,
                name=migration.name,
                error=str(e),
            )
            return MigrationResult(
                migration.version, migration.name, False, elapsed_ms(), error=str(e)
            )

        logger.info(
            "migration_applied",
            version=migration.version,
            name=migration.name,
            execution_time_ms=elapsed_ms(),
        )
        return MigrationResult(migration.version, migration.name, True, elapsed_ms())

    async def migrate(self) -> list[MigrationResult]:
        """
        Apply every pending migration in version order.

        Stops at the first failure or at an applied migration whose file no
        longer matches its recorded checksum.
        """
        migrations = discover_migrations(self.migrations_dir)
        if not migrations:
            raise ConfigurationError(
                "No migration scripts found", migrations_dir=str(self.migrations_dir)
            )

        results: list[MigrationResult] = []
        conn = await self._connect()
        try:
            applied = await get_applied_migrations(conn)
            for migration in migrations:
                recorded = applied.get(migration.version)
                if recorded is not None:
                    if recorded != migration.checksum:
                        logger.error(
                            "migration_checksum_mismatch",
                            version=migration.version,
                            recorded=recorded,
                            found=migration.checksum,
                        )
                        break
                    continue

                result = await self.apply_one(conn, migration)
                results.append(result)
                if not result.success:
                    break
        finally:
            await conn.close()

        return results

    async def status(self) -> dict[str, Any]:
        discovered = discover_migrations(self.migrations_dir)
        if not self.db_path.exists():
            return {
                "exists": False,
                "current_version": None,
                "applied_migrations": [],
                "pending_migrations": [m.version for m in discovered],
            }

        async with aiosqlite.connect(self.db_path) as conn:
            applied = await get_applied_migrations(conn)
            current = await get_current_version(conn)

        return {
            "exists": True,
            "current_version": current,
            "applied_migrations": sorted(applied, key=int),
            "pending_migrations": [m.version for m in discovered if m.version not in applied],
            "total_migrations": len(discovered),
        }

    async def verify(self) -> list[IntegrityCheck]:
        async with aiosqlite.connect(self.db_path) as conn:
            cursor = await conn.execute("PRAGMA foreign_key_check")
            fk_violations = await cursor.fetchall()

            cursor = await conn.execute("PRAGMA integrity_check")
            integrity = (await cursor.fetchone())[0]

            cursor = await conn.execute(
                "SELECT name, type FROM sqlite_master WHERE type IN ('table', 'trigger')"
            )
            objects = {(row[0], row[1]) for row in await cursor.fetchall()}

        missing_tables = [t for t in REQUIRED_TABLES if (t, "table") not in objects]
        missing_triggers = [t for t in APPEND_ONLY_TRIGGERS if (t, "trigger") not in objects]

        return [
            IntegrityCheck("foreign_keys", not fk_violations, {"violations": len(fk_violations)}),
            IntegrityCheck("integrity", integrity == "ok", {"result": integrity}),
            IntegrityCheck("required_tables", not missing_tables, {"missing": missing_tables}),
            IntegrityCheck(
                "append_only_triggers", not missing_triggers, {"missing": missing_triggers}
            ),
        ]


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> list[MigrationResult]:
    """
    Bring the database at ``db_path`` (default from settings) up to date.

    Returns one result per migration attempted; an up-to-date database
    yields an empty list.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None

    try:
        results = await SchemaMigrator(db_path, migrations_dir).migrate()
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path is not None:
            restore_backup(db_path, backup_path)
        raise

    if backup_path is not None:
        if all(r.success for r in results):
            backup_path.unlink()
        else:
            restore_backup(db_path, backup_path)

    return results


async def get_migration_status(db_path: Path | None = None) -> dict[str, Any]:
    return await SchemaMigrator(db_path or get_settings().storage.db_path).status()


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict[str, Any]]:
    checks = await SchemaMigrator(db_path or get_settings().storage.db_path).verify()
    return [check.as_dict() for check in checks]


def _print_status(status: dict[str, Any]) -> None:
    print(f"Database exists:    {status['exists']}")
    print(f"Current version:    {status['current_version'] or 'none'}")
    print(f"Applied migrations: {', '.join(status['applied_migrations']) or '-'}")
    print(f"Pending migrations: {', '.join(status['pending_migrations']) or '-'}")


def _print_checks(checks: list[dict[str, Any]]) -> bool:
    ok = True
    for check in checks:
        print(f"[{check['status']}] {check['check']}")
        if check["status"] != "PASS":
            ok = False
            for key, value in check.items():
                if key not in ("check", "status"):
                    print(f"       {key}: {value}")
    return ok


def _print_results(results: list[MigrationResult]) -> bool:
    if not results:
        print("Schema is up to date")
    for result in results:
        label = "OK" if result.success else "FAILED"
        print(f"[{label}] v{result.version}_{result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"       error: {result.error}")
    return all(r.success for r in results)


def main() -> None:
    parser = argparse.ArgumentParser(description="Buffet inventory schema migrator")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--status", action="store_true", help="Show migration status")
    mode.add_argument("--verify", action="store_true", help="Verify schema integrity")
    parser.add_argument(
        "--no-backup", action="store_true", help="Skip the file backup before migrating"
    )
    args = parser.parse_args()
    configure_logging()

    async def run() -> bool:
        if args.status:
            _print_status(await get_migration_status(args.db_path))
            return True
        if args.verify:
            return _print_checks(await verify_schema_integrity(args.db_path))
        results = await initialize_database(
            args.db_path, create_backup_before=not args.no_backup
        )
        return _print_results(results)

    raise SystemExit(0 if asyncio.run(run()) else 1)


if __name__ == "__main__":
    main()
