import logging
import os
import sqlite3

logger = logging.getLogger(__name__)


class SQLiteMigrator:
    """Applies ``migrations/*.sql`` in filename order, once each."""

    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = migrations_dir

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _ensure_migration_table(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT UNIQUE NOT NULL,
                applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """)

    def applied(self) -> set[str]:
        conn = self._get_connection()
        try:
            self._ensure_migration_table(conn)
            cursor = conn.execute("SELECT filename FROM _migrations")
            return {row[0] for row in cursor.fetchall()}
        finally:
            conn.close()

    def run_migrations(self) -> list[str]:
        """Apply all pending migrations; returns the filenames applied."""
        done = self.applied()
        pending = sorted(
            f for f in os.listdir(self.migrations_dir) if f.endswith(".sql") and f not in done
        )

        conn = self._get_connection()
        try:
            for filename in pending:
                logger.info("Applying migration: %s", filename)
                self._apply_migration(conn, filename)
        finally:
            conn.close()
        return pending

    def _read_up_script(self, filename: str) -> str:
        path = os.path.join(self.migrations_dir, filename)
        with open(path) as f:
            content = f.read()
        # Files start with the Up part; anything after "-- Down" is the rollback.
        return content.split("-- Down")[0]

    def _apply_migration(self, conn: sqlite3.Connection, filename: str) -> None:
        script = self._read_up_script(filename)
        try:
            conn.executescript(script)
            conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (filename,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {filename} failed: {e}") from e
