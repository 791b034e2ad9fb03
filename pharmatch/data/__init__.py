"""
Data layer for PharMatch.

Provides database connections, data models, and repository classes
for data access throughout the matching engine.

Submodules:
- database: MongoDB connection management and indexes
- models: Pydantic data models/schemas
- repositories: Database operations and queries
"""

from .database import (
    DatabaseManager,
    ensure_indexes,
    get_database_manager,
    get_db,
)

__all__ = [
    "DatabaseManager",
    "ensure_indexes",
    "get_database_manager",
    "get_db",
]
