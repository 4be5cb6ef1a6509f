import sqlite3

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator


@pytest.fixture
def temp_db_path(tmp_path):
    return str(tmp_path / "test_db.sqlite")


@pytest.fixture
def migrations_dir():
    # Real migrations, so the SQL itself is exercised
    return "migrations"


def table_names(db_path: str) -> set[str]:
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        return {row[0] for row in rows}
    finally:
        conn.close()


def test_migrator_applies_initial(temp_db_path, migrations_dir):
    applied = SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()

    assert applied == ["001_initial.sql"]
    assert {"_migrations", "content", "terms", "content_terms", "authors", "kv_store"} <= (
        table_names(temp_db_path)
    )


def test_migrator_is_idempotent(temp_db_path, migrations_dir):
    migrator = SQLiteMigrator(temp_db_path, migrations_dir)
    migrator.run_migrations()

    assert migrator.run_migrations() == []
    assert migrator.applied() == {"001_initial.sql"}


def test_down_section_not_applied(temp_db_path, migrations_dir):
    SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()

    # The rollback part of the file would have dropped these again
    assert "kv_store" in table_names(temp_db_path)


def test_failed_migration_is_not_recorded(temp_db_path, tmp_path):
    bad_dir = tmp_path / "migrations"
    bad_dir.mkdir()
    (bad_dir / "001_bad.sql").write_text("CREATE TABLE broken (;\n")
    migrator = SQLiteMigrator(temp_db_path, str(bad_dir))

    with pytest.raises(RuntimeError, match="001_bad.sql"):
        migrator.run_migrations()
    assert migrator.applied() == set()
