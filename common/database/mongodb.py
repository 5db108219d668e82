"""
MongoDB connection manager built on Motor.

Services receive the underlying ``AsyncIOMotorDatabase`` and work with raw
collections, so this module only owns the client lifecycle and index setup.

Example:
    from common.database import MongoDB

    db = MongoDB()
    await db.connect(
        uri="mongodb://localhost:27017",
        database_name="diaryApp",
        indexes={"users": [IndexModel("email", unique=True)]},
    )
    users = db.db["users"]
"""

import logging
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import IndexModel

logger = logging.getLogger(__name__)


class MongoDB:
    """Generic MongoDB connection manager."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._database_name: Optional[str] = None
        self._connected: bool = False

    async def connect(
        self,
        uri: str,
        database_name: str,
        indexes: Optional[Dict[str, List[IndexModel]]] = None,
    ) -> None:
        """
        Connect to MongoDB and make sure the given indexes exist.

        Args:
            uri: MongoDB connection string
            database_name: Name of the database to use
            indexes: Mapping of collection name to the indexes it needs
        """
        # Mask the URI for logging (hide credentials)
        masked_uri = uri.split("@")[-1] if "@" in uri else uri
        logger.info(f"Connecting to MongoDB: {masked_uri}")
        logger.debug(f"Database name: {database_name}")

        try:
            # tz_aware so stored datetimes come back as UTC-aware values
            self._client = AsyncIOMotorClient(uri, tz_aware=True)
            self._database_name = database_name

            for collection_name, models in (indexes or {}).items():
                if not models:
                    continue
                names = await self._client[database_name][collection_name].create_indexes(models)
                logger.debug(f"Ensured indexes on {collection_name}: {names}")

            self._connected = True
            logger.info(f"Successfully connected to MongoDB database: {database_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def disconnect(self) -> None:
        """Close the MongoDB connection."""
        if self._client:
            logger.info(f"Disconnecting from MongoDB database: {self._database_name}")
            self._client.close()
            self._client = None
            self._database_name = None
            self._connected = False
            logger.debug("MongoDB connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._connected

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """Get the underlying Motor database instance."""
        if not self._client or not self._database_name:
            raise RuntimeError("Database not connected")
        return self._client[self._database_name]
