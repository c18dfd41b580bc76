"""Unit tests for database migrator."""

import shutil
from pathlib import Path

import aiosqlite
import pytest

from stockledger.core.exceptions import ConfigurationError, DatabaseError
from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
    LEDGER_TRIGGERS,
    MigrationInfo,
    apply_migration,
    create_backup,
    discover_migrations,
    get_applied_migrations,
    get_current_version,
    get_migration_status,
    initialize_database,
    restore_backup,
    verify_schema_integrity,
)


class TestMigrationInfo:
    """Tests for MigrationInfo dataclass."""

    def test_from_file_parses_filename(self, tmp_path: Path):
        """from_file() parses version and name from filename."""
        migration_file = tmp_path / "v001_initial_schema.sql"
        migration_file.write_text("-- Test migration\nSELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "001"
        assert info.name == "initial_schema"
        assert info.path == migration_file
        assert len(info.checksum) == 16

    def test_different_content_different_checksum(self, tmp_path: Path):
        file1 = tmp_path / "v001_a.sql"
        file1.write_text("SELECT 1;")
        file2 = tmp_path / "v002_b.sql"
        file2.write_text("SELECT 2;")

        assert MigrationInfo.from_file(file1).checksum != MigrationInfo.from_file(file2).checksum

    def test_invalid_filename(self, tmp_path: Path):
        bad = tmp_path / "initial.sql"
        bad.write_text("SELECT 1;")
        with pytest.raises(ValueError, match="Invalid migration filename"):
            MigrationInfo.from_file(bad)


class TestDiscoverMigrations:
    def test_packaged_migrations(self):
        migrations = discover_migrations()
        assert [m.version for m in migrations][0] == "001"
        assert migrations[0].name == "stock_ledger"

    def test_sorted_by_version(self, tmp_path: Path):
        (tmp_path / "v002_second.sql").write_text("SELECT 2;")
        (tmp_path / "v001_first.sql").write_text("SELECT 1;")

        assert [m.version for m in discover_migrations(tmp_path)] == ["001", "002"]

    def test_empty_dir(self, tmp_path: Path):
        assert discover_migrations(tmp_path) == []


class TestInitializeDatabase:
    """Tests for initialize_database()."""

    async def test_creates_schema(self, temp_db_path: Path):
        results = await initialize_database(temp_db_path, create_backup_before=False)

        assert results
        assert all(r.success for r in results)
        async with aiosqlite.connect(temp_db_path) as conn:
            assert await get_current_version(conn) == "001"

    async def test_rerun_is_noop(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)
        results = await initialize_database(temp_db_path, create_backup_before=False)
        assert results == []

    async def test_backup_cleaned_up_on_success(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)
        await initialize_database(temp_db_path, create_backup_before=True)

        assert list(temp_db_path.parent.glob("*.backup_*")) == []

    async def test_records_checksum(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)
        expected = {m.version: m.checksum for m in discover_migrations()}

        async with aiosqlite.connect(temp_db_path) as conn:
            assert await get_applied_migrations(conn) == expected

    async def test_no_migration_files(self, temp_db_path: Path, tmp_path: Path):
        empty = tmp_path / "none"
        empty.mkdir()

        with pytest.raises(ConfigurationError) as exc_info:
            await initialize_database(
                temp_db_path, create_backup_before=False, migrations_dir=empty
            )

        assert exc_info.value.code == "NO_MIGRATIONS"

    async def test_failed_migration_raises_and_restores(
        self, temp_db_path: Path, tmp_path: Path
    ):
        await initialize_database(temp_db_path, create_backup_before=False)
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        for packaged in discover_migrations():
            shutil.copy2(packaged.path, migrations / packaged.path.name)
        (migrations / "v002_broken.sql").write_text("CREATE TABLE (;")

        with pytest.raises(DatabaseError) as exc_info:
            await initialize_database(temp_db_path, migrations_dir=migrations)

        assert exc_info.value.details["operation"] == "migration v002_broken"
        assert list(temp_db_path.parent.glob("*.backup_*"))
        async with aiosqlite.connect(temp_db_path) as conn:
            assert await get_current_version(conn) == "001"


class TestApplyMigration:
    async def test_failed_migration_reported(self, tmp_path: Path):
        broken = tmp_path / "v001_broken.sql"
        broken.write_text("CREATE TABLE (;")
        info = MigrationInfo.from_file(broken)

        async with aiosqlite.connect(tmp_path / "x.db") as conn:
            result = await apply_migration(conn, info)

        assert result.success is False
        assert result.error


class TestMigrationStatus:
    async def test_missing_database(self, tmp_path: Path):
        status = await get_migration_status(tmp_path / "missing.db")
        assert status["exists"] is False
        assert status["current_version"] is None
        assert "001" in status["pending_migrations"]

    async def test_after_migration(self, initialized_db: Path):
        status = await get_migration_status(initialized_db)
        assert status["exists"] is True
        assert status["current_version"] == "001"
        assert status["pending_migrations"] == []
        assert "001" in status["applied_migrations"]


class TestVerifySchemaIntegrity:
    async def test_all_checks_pass(self, initialized_db: Path):
        checks = await verify_schema_integrity(initialized_db)
        by_name = {c["check"]: c for c in checks}

        assert set(by_name) == {"foreign_keys", "integrity", "required_tables", "ledger_triggers"}
        assert all(c["status"] == "PASS" for c in checks)

    async def test_missing_trigger_detected(self, initialized_db: Path):
        async with aiosqlite.connect(initialized_db) as conn:
            await conn.execute(f"DROP TRIGGER {LEDGER_TRIGGERS[0]}")
            await conn.commit()

        checks = {c["check"]: c for c in await verify_schema_integrity(initialized_db)}

        assert checks["ledger_triggers"]["status"] == "FAIL"
        assert checks["ledger_triggers"]["missing"] == [LEDGER_TRIGGERS[0]]

    async def test_empty_database_fails_tables(self, temp_db_path: Path):
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("SELECT 1")

        checks = {c["check"]: c for c in await verify_schema_integrity(temp_db_path)}
        assert checks["required_tables"]["status"] == "FAIL"


class TestBackup:
    def test_create_and_restore(self, tmp_path: Path):
        db_path = tmp_path / "ledger.db"
        db_path.write_bytes(b"original")

        backup = create_backup(db_path)
        db_path.write_bytes(b"changed")
        restore_backup(db_path, backup)

        assert backup.exists()
        assert db_path.read_bytes() == b"original"
