"""
MongoDB connection and collection management for the library store.
Handles connection, indexing and id sequences.
"""

from typing import Dict, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure

logger = structlog.get_logger(__name__)


class LibraryDatabase:
    """
    Async MongoDB handle for the library collections.

    Collections: authors, books, author_books, comments, users, errors, and
    counters (integer id sequences for authors and books).
    """

    def __init__(self, database: AsyncIOMotorDatabase, client: Optional[AsyncIOMotorClient] = None):
        self.client = client
        self.database = database
        self.authors = database.authors
        self.books = database.books
        self.author_books = database.author_books
        self.comments = database.comments
        self.users = database.users
        self.errors = database.errors
        self.counters = database.counters

    @classmethod
    async def connect(cls, connection_url: str, database_name: str) -> "LibraryDatabase":
        """
        Open a client, verify it with a ping and make sure the indexes exist.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database

        Returns:
            Connected LibraryDatabase
        """
        client = AsyncIOMotorClient(connection_url)
        try:
            await client.admin.command("ping")
        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            client.close()
            raise

        library_db = cls(client[database_name], client)
        await library_db.initialize()
        logger.info("Successfully connected to MongoDB", database=database_name)
        return library_db

    async def initialize(self) -> None:
        """Create the indexes backing uniqueness and the common read paths."""
        try:
            # Unique identification, ignoring authors without one
            await self.authors.create_index(
                "identification",
                unique=True,
                partialFilterExpression={"identification": {"$type": "string"}},
            )
            await self.authors.create_index("first_name")
            await self.authors.create_index("last_name")

            await self.author_books.create_index([("author_id", 1), ("book_id", 1)], unique=True)
            await self.author_books.create_index([("book_id", 1), ("order", 1)])

            await self.comments.create_index([("book_id", 1), ("published_at", -1)])

            await self.users.create_index("normalized_email", unique=True)

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def next_sequence(self, name: str) -> int:
        """Atomically increment and return the named sequence (first value is 1)."""
        counter = await self.counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter["seq"]

    async def reserve_sequence(self, name: str, count: int) -> int:
        """Reserve ``count`` consecutive values and return the first one."""
        counter = await self.counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"seq": count}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter["seq"] - count + 1

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            return {"status": "healthy"}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

    async def get_stats(self) -> Dict[str, int]:
        """Document counts per collection."""
        return {
            "authors": await self.authors.count_documents({}),
            "books": await self.books.count_documents({}),
            "comments": await self.comments.count_documents({"has_been_deleted": False}),
            "users": await self.users.count_documents({}),
        }
