"""
Database connection management.
Handles per-context connections, write transactions, initialization, and teardown.
"""

import logging
import sqlite3
import time
from contextlib import contextmanager

from flask import g, current_app

from models.errors import ConcurrencyConflictError
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


def get_db():
    """
    Get per-context database connection with row factory.

    Returns:
        sqlite3.Connection: Database connection object
    """
    if 'db' not in g:
        db_path = current_app.config.get('DATABASE_PATH', 'instance/camera_360.db')
        g.db = sqlite3.connect(
            db_path,
            timeout=current_app.config.get('DATABASE_BUSY_TIMEOUT', 5),
            detect_types=sqlite3.PARSE_DECLTYPES
        )
        g.db.row_factory = sqlite3.Row
        # Enable foreign key constraints
        g.db.execute('PRAGMA foreign_keys = ON')
        # Enable WAL mode for better concurrency
        g.db.execute('PRAGMA journal_mode = WAL')
    return g.db


def close_db(e=None):
    """
    Close database connection.

    Args:
        e: Exception if any (from Flask teardown context)
    """
    db = g.pop('db', None)
    if db is not None:
        db.close()


@contextmanager
def transaction(db=None):
    """
    Run a block inside a BEGIN IMMEDIATE transaction.

    BEGIN IMMEDIATE takes the database write lock up front, so any
    check-then-write sequence inside the block is serialized against every
    other writer. The lock acquisition is retried TRANSACTION_RETRIES times
    before giving up with ConcurrencyConflictError.

    Usage:
        with transaction() as cursor:
            cursor.execute(...)

    Yields:
        sqlite3.Cursor: Cursor bound to the open transaction
    """
    db = db or get_db()
    retries = current_app.config.get('TRANSACTION_RETRIES', 3)

    if db.in_transaction:
        # Flush implicit transactions opened by earlier statements
        db.commit()

    cursor = db.cursor()
    for attempt in range(1, retries + 1):
        try:
            cursor.execute('BEGIN IMMEDIATE')
            break
        except sqlite3.OperationalError as e:
            if 'locked' not in str(e) and 'busy' not in str(e):
                raise
            logger.warning(f"Write lock busy (attempt {attempt}/{retries})")
            time.sleep(0.05 * attempt)
    else:
        raise ConcurrencyConflictError(MESSAGES['concurrency_conflict'])

    try:
        yield cursor
        db.commit()
    except Exception:
        db.rollback()
        raise


def init_db():
    """
    Initialize database: drop existing tables, create new schema, insert seed data.
    WARNING: This will delete all existing data!
    """
    from database.schema import drop_tables, create_tables, create_indexes
    from database.seed import seed_database

    db = get_db()

    # Drop existing tables (in reverse order of dependencies)
    drop_tables(db)

    # Create all tables
    create_tables(db)

    # Create indexes
    create_indexes(db)

    # Insert seed data
    seed_database(db)

    db.commit()
    logger.info("Database initialized successfully!")
