"""
Database package for the 360° camera booking system.

This package provides modular database operations:
- connection: Database connection management (get_db, close_db, transaction, init_db)
- schema: Table creation and indexes
- seed: Initial seed data

For convenience, the public functions are re-exported from this module.
"""

from database.connection import get_db, close_db, init_db, transaction
from database.schema import drop_tables, create_tables, create_indexes
from database.seed import seed_database

__all__ = [
    # Connection
    'get_db',
    'close_db',
    'init_db',
    'transaction',
    # Schema
    'drop_tables',
    'create_tables',
    'create_indexes',
    # Seed
    'seed_database',
]
