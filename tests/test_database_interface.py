"""Tests for the key-value Database implementation."""

from invoicemaker.database.factories import (
    BACKUP_DIR_ENV,
    DB_PATH_ENV,
    create_sqlite_database,
    resolve_backup_directory,
)


class TestDatabaseInterface:
    """Tests for get/set/delete on the SQLite store."""

    def test_missing_key_returns_none(self, temp_db):
        assert temp_db.get_value("savedInvoices") is None

    def test_set_and_get(self, temp_db):
        temp_db.set_value("invoiceSaveCount", "3")
        assert temp_db.get_value("invoiceSaveCount") == "3"

    def test_overwrite(self, temp_db):
        temp_db.set_value("savedCustomers", "[]")
        temp_db.set_value("savedCustomers", '[{"name": "x"}]')
        assert temp_db.get_value("savedCustomers") == '[{"name": "x"}]'

    def test_delete(self, temp_db):
        temp_db.set_value("k", "v")
        temp_db.delete_value("k")
        temp_db.delete_value("k")
        assert temp_db.get_value("k") is None

    def test_values_persist_across_connections(self, temp_db):
        temp_db.set_value("k", "v")

        other = create_sqlite_database(database_path=temp_db.database_path)
        try:
            assert other.get_value("k") == "v"
        finally:
            other.disconnect()


class TestConfiguration:
    """Tests for path resolution from options and environment."""

    def test_db_path_from_environment(self, tmp_path, monkeypatch):
        db_file = tmp_path / "env.db"
        monkeypatch.setenv(DB_PATH_ENV, str(db_file))

        db = create_sqlite_database()
        try:
            db.set_value("k", "v")
        finally:
            db.disconnect()

        assert db_file.exists()

    def test_backup_dir_explicit(self, tmp_path, monkeypatch):
        monkeypatch.setenv(BACKUP_DIR_ENV, str(tmp_path / "env"))
        assert resolve_backup_directory(str(tmp_path / "explicit")) == tmp_path / "explicit"

    def test_backup_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv(BACKUP_DIR_ENV, str(tmp_path / "env"))
        assert resolve_backup_directory() == tmp_path / "env"

    def test_backup_dir_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv(BACKUP_DIR_ENV, raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert resolve_backup_directory() == tmp_path / ".invoicemaker" / "backups"
