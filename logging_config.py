# logging_config.py

import logging
import sqlite3
from datetime import datetime, timezone
import os
from typing import Optional

MAX_LOG_ENTRIES = 10000  # Maximum number of log entries to keep
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SQLiteHandler(logging.Handler):
    """Keeps the most recent log records in a SQLite table, including command audit records."""

    def __init__(self, db_path: str, max_entries: int = MAX_LOG_ENTRIES):
        super().__init__()
        self.db_path = db_path
        self.max_entries = max_entries
        self.create_table()

    def create_table(self):
        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL,
                    logger TEXT,
                    message TEXT NOT NULL,
                    exception TEXT
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def emit(self, record):
        """Inserts a log record and trims the table to max_entries."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error:
            self.handleError(record)
            return

        try:
            exception = None
            if record.exc_info:
                exception = logging.Formatter().formatException(record.exc_info)

            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO logs (timestamp, level, logger, message, exception)
                VALUES (?, ?, ?, ?, ?)
            """, (
                datetime.now(timezone.utc).isoformat(),
                record.levelname,
                record.name,
                record.getMessage(),
                exception,
            ))

            cursor.execute("SELECT COUNT(*) FROM logs")
            count = cursor.fetchone()[0]
            if count > self.max_entries:
                cursor.execute("""
                    DELETE FROM logs
                    WHERE id IN (
                        SELECT id FROM logs
                        ORDER BY id ASC
                        LIMIT ?
                    )
                """, (count - self.max_entries,))

            conn.commit()
        except Exception:
            self.handleError(record)
        finally:
            conn.close()


def setup_logging(debug: bool = False, db_path: Optional[str] = None):
    """
    Configures the root logger with a console handler and, unless db_path is empty,
    a SQLite handler. Calling it again does not add duplicate handlers.
    """
    if db_path is None:
        db_path = os.getenv("LOG_DB_PATH", "logs.db")

    level = logging.DEBUG if debug else logging.INFO
    logger = logging.getLogger()
    logger.setLevel(level)

    if getattr(setup_logging, "_configured", False):
        return
    setup_logging._configured = True

    # Console handler for real-time logs
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    if db_path:
        sqlite_handler = SQLiteHandler(db_path=db_path, max_entries=MAX_LOG_ENTRIES)
        sqlite_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(sqlite_handler)
