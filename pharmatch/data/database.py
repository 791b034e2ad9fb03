"""
Database connection manager for PharMatch.

Provides MongoDB connection management and the index definitions the
matching engine relies on for exactly-once writes.
"""

from typing import Any, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from pharmatch.utils.config import get_settings
from pharmatch.utils.logger import get_logger

logger = get_logger(__name__)


# Collection names
ACTORS = "actors"
TARGETS = "targets"
SWIPES = "swipes"
MATCHES = "matches"
QUOTAS = "quotas"
BLOCKS = "blocks"


class DatabaseManager:
    """
    Manages MongoDB database connections.

    Implements singleton pattern for connection reuse.
    """

    _instance: Optional["DatabaseManager"] = None
    _client: Optional[MongoClient] = None

    def __new__(cls) -> "DatabaseManager":
        """Ensure singleton instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize database manager with settings."""
        if hasattr(self, "_initialized") and self._initialized:
            return

        self._settings = get_settings()
        self._db_name = self._settings.database.name
        self._uri = self._build_uri()
        self._initialized = True

    def _build_uri(self) -> str:
        """
        Build MongoDB connection URI from settings.

        Rejects hosts carrying shell metacharacters; credentials are
        URL-encoded by ``DatabaseSettings.connection_string``.
        """
        db_settings = self._settings.database

        host = db_settings.host.strip()
        if not host or any(c in host for c in [";", "&", "|", "$", "`"]):
            raise ValueError(f"Invalid database host: {host}")

        return db_settings.connection_string

    # -------------------------------------------------------------------------
    # Client
    # -------------------------------------------------------------------------

    def get_client(self) -> MongoClient:
        """Get or create the MongoDB client."""
        if self._client is None:
            logger.info("Creating MongoDB client")
            try:
                self._client = MongoClient(
                    self._uri,
                    serverSelectionTimeoutMS=5000,
                    connectTimeoutMS=5000,
                    maxPoolSize=50,
                    minPoolSize=5,
                    retryWrites=True,
                )
            except Exception as e:
                self._client = None
                logger.error(f"Failed to create client: {e}")
                raise
        return self._client

    def get_database(self) -> Database:
        """Get database instance."""
        return self.get_client()[self._db_name]

    def get_collection(self, collection_name: str) -> Any:
        """Get a collection by name."""
        return self.get_database()[collection_name]

    def check_connection(self) -> bool:
        """Check if the connection is healthy."""
        try:
            self.get_client().admin.command("ping")
            return True
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"Connection check failed: {e}")
            self._client = None
            return False

    def close(self) -> None:
        """Close the client connection."""
        if self._client:
            logger.info("Closing MongoDB client")
            self._client.close()
            self._client = None

    # -------------------------------------------------------------------------
    # Index Management
    # -------------------------------------------------------------------------

    def ensure_indexes(self, database: Optional[Database] = None) -> None:
        """Create indexes for all collections."""
        db = database if database is not None else self.get_database()
        ensure_indexes(db)


def ensure_indexes(db: Any) -> None:
    """
    Create the indexes of every engine collection on ``db``.

    The unique indexes on swipes, matches and quotas are what make the
    upserts in the repositories exactly-once.
    """
    logger.info("Ensuring database indexes")

    actors = db[ACTORS]
    actors.create_index("actor_id", unique=True)

    targets = db[TARGETS]
    targets.create_index([("target_type", ASCENDING), ("target_id", ASCENDING)], unique=True)
    targets.create_index("owner_id")
    targets.create_index("status")
    targets.create_index([("created_at", DESCENDING)])

    swipes = db[SWIPES]
    swipes.create_index(
        [
            ("actor_id", ASCENDING),
            ("target_type", ASCENDING),
            ("target_id", ASCENDING),
            ("context_id", ASCENDING),
        ],
        unique=True,
        name="uq_swipe_pair",
    )
    swipes.create_index([("actor_id", ASCENDING), ("decision", ASCENDING)])

    matches = db[MATCHES]
    matches.create_index(
        [
            ("actor_a", ASCENDING),
            ("actor_b", ASCENDING),
            ("context_target_id", ASCENDING),
        ],
        unique=True,
        name="uq_match_pair",
    )
    matches.create_index("actor_b")
    matches.create_index("status")
    matches.create_index([("matched_at", DESCENDING)])

    quotas = db[QUOTAS]
    quotas.create_index(
        [
            ("actor_id", ASCENDING),
            ("action_kind", ASCENDING),
            ("period_start", ASCENDING),
        ],
        unique=True,
        name="uq_quota_period",
    )

    blocks = db[BLOCKS]
    blocks.create_index(
        [("blocker_id", ASCENDING), ("blocked_id", ASCENDING)],
        unique=True,
    )
    blocks.create_index("blocked_id")

    logger.info("Database indexes created successfully")


# Global database manager instance
_db_manager: Optional[DatabaseManager] = None


def get_database_manager() -> DatabaseManager:
    """Get the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def get_db() -> Database:
    """Convenience function to get the database."""
    return get_database_manager().get_database()
