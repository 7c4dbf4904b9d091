"""Tests for the versioned schema migrator."""

from pathlib import Path

import aiosqlite
import pytest

from buffet.core.exceptions import ConfigurationError
from buffet.infrastructure.storage.sqlite.migrations import (
    MigrationInfo,
    SchemaMigrator,
    discover_migrations,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)
from buffet.infrastructure.storage.sqlite.migrations.migrator import (
    APPEND_ONLY_TRIGGERS,
    REQUIRED_TABLES,
)


class TestDiscovery:
    """Tests for migration file discovery."""

    def test_bundled_migrations_are_ordered(self):
        migrations = discover_migrations()
        assert migrations
        assert migrations[0].version == "001"
        assert [m.version for m in migrations] == sorted(m.version for m in migrations)

    def test_invalid_filename_rejected(self, tmp_path: Path):
        path = tmp_path / "001_missing_prefix.sql"
        path.write_text("SELECT 1;")
        with pytest.raises(ValueError):
            MigrationInfo.from_file(path)

    def test_invalid_files_skipped(self, tmp_path: Path):
        (tmp_path / "v001_ok.sql").write_text("SELECT 1;")
        (tmp_path / "vbad.sql").write_text("SELECT 1;")
        assert [m.name for m in discover_migrations(tmp_path)] == ["ok"]

    def test_checksum_tracks_content(self, tmp_path: Path):
        path = tmp_path / "v001_a.sql"
        path.write_text("SELECT 1;")
        first = MigrationInfo.from_file(path).checksum
        path.write_text("SELECT 2;")
        assert MigrationInfo.from_file(path).checksum != first


class TestInitializeDatabase:
    """Tests for applying migrations."""

    async def test_fresh_database(self, tmp_path: Path):
        db_path = tmp_path / "fresh.db"
        results = await initialize_database(db_path, create_backup_before=False)

        assert results
        assert all(r.success for r in results)

        async with aiosqlite.connect(db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
        assert set(REQUIRED_TABLES) <= tables

    async def test_second_run_applies_nothing(self, tmp_path: Path):
        db_path = tmp_path / "twice.db"
        await initialize_database(db_path, create_backup_before=False)
        assert await initialize_database(db_path) == []

    async def test_backup_removed_after_success(self, tmp_path: Path):
        db_path = tmp_path / "backup.db"
        await initialize_database(db_path, create_backup_before=False)
        await initialize_database(db_path, create_backup_before=True)
        assert list(tmp_path.glob("backup.backup_*.db")) == []

    async def test_failed_migration_reported(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "v001_base.sql").write_text(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            " version TEXT PRIMARY KEY, name TEXT NOT NULL, checksum TEXT NOT NULL,"
            " execution_time_ms INTEGER);"
        )
        (migrations_dir / "v002_broken.sql").write_text("CREATE TABLE oops (;")

        results = await initialize_database(
            tmp_path / "broken.db",
            create_backup_before=False,
            migrations_dir=migrations_dir,
        )

        assert [r.success for r in results] == [True, False]
        assert results[1].error

        status = await SchemaMigrator(tmp_path / "broken.db", migrations_dir).status()
        assert status["applied_migrations"] == ["001"]
        assert status["pending_migrations"] == ["002"]

    async def test_changed_applied_migration_stops(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        base = migrations_dir / "v001_base.sql"
        base.write_text(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            " version TEXT PRIMARY KEY, name TEXT NOT NULL, checksum TEXT NOT NULL,"
            " execution_time_ms INTEGER);"
        )
        db_path = tmp_path / "drift.db"
        await initialize_database(
            db_path, create_backup_before=False, migrations_dir=migrations_dir
        )

        base.write_text(base.read_text() + "\n-- edited")
        (migrations_dir / "v002_more.sql").write_text("CREATE TABLE more (id TEXT);")

        results = await initialize_database(
            db_path, create_backup_before=False, migrations_dir=migrations_dir
        )
        assert results == []

    async def test_empty_migrations_dir_is_a_configuration_error(self, tmp_path: Path):
        empty = tmp_path / "none"
        empty.mkdir()

        with pytest.raises(ConfigurationError) as exc_info:
            await initialize_database(
                tmp_path / "none.db", create_backup_before=False, migrations_dir=empty
            )
        assert exc_info.value.details["migrations_dir"] == str(empty)

    async def test_status(self, tmp_path: Path):
        db_path = tmp_path / "status.db"
        missing = await get_migration_status(db_path)
        assert missing["exists"] is False
        assert "001" in missing["pending_migrations"]

        await initialize_database(db_path, create_backup_before=False)
        status = await get_migration_status(db_path)
        assert status["exists"] is True
        assert status["current_version"] == "001"
        assert status["pending_migrations"] == []


class TestSchemaIntegrity:
    """Tests for the integrity checks and the ledger triggers."""

    async def test_verify_passes_on_migrated_database(self, db):
        checks = await verify_schema_integrity(db)
        assert {c["check"]: c["status"] for c in checks} == {
            "foreign_keys": "PASS",
            "integrity": "PASS",
            "required_tables": "PASS",
            "append_only_triggers": "PASS",
        }

    async def test_verify_reports_missing_trigger(self, db):
        async with aiosqlite.connect(db) as conn:
            await conn.execute(f"DROP TRIGGER {APPEND_ONLY_TRIGGERS[0]}")
            await conn.commit()

        checks = {c["check"]: c for c in await verify_schema_integrity(db)}
        assert checks["append_only_triggers"]["status"] == "FAIL"
        assert checks["append_only_triggers"]["missing"] == [APPEND_ONLY_TRIGGERS[0]]

    async def test_audit_log_rejects_update_and_delete(self, db):
        async with aiosqlite.connect(db) as conn:
            await conn.execute(
                """
                INSERT INTO audit_log (
                    id, material_id, material_name, change, type, related_id, created_at
                ) VALUES ('e1', 'm1', 'Milk', -1, 'sale', 'o1', '2024-01-10T09:00:00.000000+00:00')
                """
            )
            await conn.commit()

            with pytest.raises(aiosqlite.IntegrityError, match="append-only"):
                await conn.execute("UPDATE audit_log SET change = 5 WHERE id = 'e1'")
            with pytest.raises(aiosqlite.IntegrityError, match="append-only"):
                await conn.execute("DELETE FROM audit_log WHERE id = 'e1'")
