"""SQLite schema migrations for the event store."""

import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from swipefeed.events.errors import MigrationError


logger = structlog.get_logger()

CURRENT_VERSION = 2


@dataclass(frozen=True)
class Migration:
    """A database migration.

    Attributes:
        version: Target version after applying this migration.
        description: Human-readable description.
        up_sql: SQL to apply the migration.
    """

    version: int
    description: str
    up_sql: str


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="Events table with type/post lookups",
        up_sql="""
CREATE TABLE IF NOT EXISTS events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    post_id INTEGER NOT NULL,
    timestamp INTEGER NOT NULL,
    score INTEGER NOT NULL DEFAULT 0,
    dwell_ms INTEGER,
    author TEXT,
    domain TEXT,
    title TEXT,
    topics_json TEXT,
    url TEXT,
    comment_count INTEGER
);
CREATE INDEX IF NOT EXISTS idx_events_type ON events(type);
CREATE INDEX IF NOT EXISTS idx_events_post_id ON events(post_id);
CREATE INDEX IF NOT EXISTS idx_events_timestamp ON events(timestamp);
CREATE INDEX IF NOT EXISTS idx_events_type_post ON events(type, post_id);
""",
    ),
    Migration(
        version=2,
        description="Comment-level event columns",
        up_sql="""
ALTER TABLE events ADD COLUMN comment_id INTEGER;
ALTER TABLE events ADD COLUMN comment_author TEXT;
ALTER TABLE events ADD COLUMN comment_text TEXT;
ALTER TABLE events ADD COLUMN comment_time INTEGER;
CREATE INDEX IF NOT EXISTS idx_events_type_comment ON events(type, comment_id);
""",
    ),
]


class MigrationManager:
    """Manages SQLite schema migrations."""

    VERSION_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL,
    description TEXT
);
"""

    def __init__(self, connection: sqlite3.Connection) -> None:
        """Initialize the migration manager.

        Args:
            connection: SQLite connection to manage.
        """
        self._conn = connection
        self._log = logger.bind(component="event_store", operation="migration")

    def get_current_version(self) -> int:
        """Get the current schema version.

        Returns:
            Current version number, or 0 if no migrations applied.
        """
        self._conn.execute(self.VERSION_TABLE_SQL)
        self._conn.commit()
        row = self._conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row[0] is not None else 0

    def apply_migrations(self) -> list[int]:
        """Apply all pending migrations.

        Returns:
            List of version numbers that were applied.

        Raises:
            MigrationError: If a migration fails.
        """
        current = self.get_current_version()
        applied: list[int] = []

        for migration in MIGRATIONS:
            if migration.version <= current:
                continue

            self._log.info(
                "applying_migration",
                version=migration.version,
                description=migration.description,
            )
            try:
                self._conn.executescript(migration.up_sql)
                self._conn.execute(
                    """
                    INSERT INTO schema_version (version, applied_at, description)
                    VALUES (?, ?, ?)
                    """,
                    (
                        migration.version,
                        datetime.now(UTC).isoformat(),
                        migration.description,
                    ),
                )
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                self._log.error(
                    "migration_failed", version=migration.version, error=str(e)
                )
                raise MigrationError(migration.version, str(e)) from e

            applied.append(migration.version)

        return applied
