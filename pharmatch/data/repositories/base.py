"""
Base repository class providing common CRUD operations.

All entity-specific repositories inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.results import InsertOneResult

from pharmatch.data.database import get_database_manager
from pharmatch.data.models.base import BaseDocument, utcnow
from pharmatch.utils.logger import get_logger

logger = get_logger(__name__)

# Type variable for document models
T = TypeVar("T", bound=BaseDocument)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.

    Subclasses must define the collection name and model class. A
    collection may be injected (e.g. a mongomock collection in tests);
    otherwise it is resolved lazily from the database manager.
    """

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Name of the MongoDB collection."""
        pass

    @property
    @abstractmethod
    def model_class(self) -> type[T]:
        """Pydantic model class for this repository."""
        pass

    def __init__(self, collection: Optional[Collection] = None) -> None:
        """Initialize repository with an optional pre-bound collection."""
        self._collection = collection

    # -------------------------------------------------------------------------
    # Collection Access
    # -------------------------------------------------------------------------

    @property
    def collection(self) -> Collection:
        """Collection backing this repository."""
        if self._collection is None:
            self._collection = get_database_manager().get_collection(self.collection_name)
        return self._collection

    # -------------------------------------------------------------------------
    # Document Conversion
    # -------------------------------------------------------------------------

    def _to_model(self, document: Optional[dict[str, Any]]) -> Optional[T]:
        """Convert MongoDB document to Pydantic model."""
        if document is None:
            return None
        return self.model_class.model_validate(document)

    def _to_models(self, documents: list[dict[str, Any]]) -> list[T]:
        """Convert list of MongoDB documents to Pydantic models."""
        return [self._to_model(doc) for doc in documents if doc is not None]

    def _to_document(self, model: T) -> dict[str, Any]:
        """Convert Pydantic model to MongoDB document."""
        return model.model_dump_mongo()

    @staticmethod
    def _to_object_id(id_value: str | ObjectId) -> ObjectId:
        """Convert string to ObjectId if needed."""
        if isinstance(id_value, ObjectId):
            return id_value
        return ObjectId(id_value)

    # -------------------------------------------------------------------------
    # CRUD Operations
    # -------------------------------------------------------------------------

    def create(self, model: T) -> T:
        """Create a new document."""
        document = self._to_document(model)
        now = utcnow()
        document.setdefault("created_at", now)
        document["updated_at"] = now

        result: InsertOneResult = self.collection.insert_one(document)
        model.id = result.inserted_id
        logger.debug(f"Created {self.collection_name} document: {result.inserted_id}")
        return model

    def get_by_id(self, id_value: str | ObjectId) -> Optional[T]:
        """Get a document by its ID."""
        if isinstance(id_value, str) and not ObjectId.is_valid(id_value):
            return None
        document = self.collection.find_one({"_id": self._to_object_id(id_value)})
        return self._to_model(document)

    def find(
        self,
        query: dict[str, Any],
        skip: int = 0,
        limit: int = 0,
        sort_by: Optional[str] = None,
        sort_order: int = -1,
    ) -> list[T]:
        """Find documents matching a query; ``limit=0`` means no limit."""
        cursor = self.collection.find(query)
        if sort_by:
            cursor = cursor.sort(sort_by, sort_order)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return self._to_models(list(cursor))

    def find_one(self, query: dict[str, Any]) -> Optional[T]:
        """Find a single document matching a query."""
        return self._to_model(self.collection.find_one(query))

    def count(self, query: Optional[dict[str, Any]] = None) -> int:
        """Count documents matching a query."""
        return self.collection.count_documents(query or {})

    def exists(self, query: dict[str, Any]) -> bool:
        """Check if any document matches the query."""
        return self.collection.count_documents(query, limit=1) > 0
