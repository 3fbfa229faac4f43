"""
Repositories over the library collections.

Each repository converts between stored documents and the catalog entities and
performs the cascades the relational model requires (links of a deleted author
or book, comments of a deleted book).
"""

from typing import Iterable, List, Optional

import structlog

from catalog.models import (
    Author, AuthorBook, Book, Comment, ErrorLog, User, UserClaim, ordered_links
)
from storage.database import LibraryDatabase
from storage.query import QuerySpec

logger = structlog.get_logger(__name__)

AUTHOR_SEQUENCE = "authors"
BOOK_SEQUENCE = "books"


async def count_matching(collection, spec: QuerySpec) -> int:
    """Count with a plain filter, or through an aggregation when the spec joins other collections."""
    if not spec.joins:
        return await collection.count_documents(spec.to_filter())
    result = await collection.aggregate(spec.to_match_pipeline() + [{"$count": "total"}]).to_list(length=1)
    return result[0]["total"] if result else 0


async def find_matching(collection, spec: QuerySpec) -> List[dict]:
    if spec.joins:
        return await collection.aggregate(spec.to_page_pipeline()).to_list(length=spec.limit)

    cursor = collection.find(spec.to_filter()).sort(spec.to_sort())
    if spec.skip:
        cursor = cursor.skip(spec.skip)
    if spec.limit is not None:
        cursor = cursor.limit(spec.limit)
    return await cursor.to_list(length=spec.limit)


class AuthorRepository:
    """Author documents keyed by an integer sequence."""

    def __init__(self, db: LibraryDatabase):
        self.db = db
        self.collection = db.authors

    async def next_id(self) -> int:
        return await self.db.next_sequence(AUTHOR_SEQUENCE)

    async def reserve_ids(self, count: int) -> List[int]:
        first = await self.db.reserve_sequence(AUTHOR_SEQUENCE, count)
        return list(range(first, first + count))

    async def count(self, spec: QuerySpec) -> int:
        return await count_matching(self.collection, spec)

    async def find(self, spec: QuerySpec) -> List[Author]:
        documents = await find_matching(self.collection, spec)
        return [Author.model_validate(document) for document in documents]

    async def get(self, author_id: int) -> Optional[Author]:
        document = await self.collection.find_one({"_id": author_id})
        return Author.model_validate(document) if document else None

    async def get_many(self, author_ids: Iterable[int]) -> List[Author]:
        documents = await self.collection.find({"_id": {"$in": list(author_ids)}}).to_list(length=None)
        return [Author.model_validate(document) for document in documents]

    async def existing_ids(self, author_ids: Iterable[int]) -> List[int]:
        documents = await self.collection.find(
            {"_id": {"$in": list(author_ids)}}, {"_id": 1}
        ).to_list(length=None)
        return [document["_id"] for document in documents]

    async def identification_exists(self, identification: str) -> bool:
        return await self.collection.find_one({"identification": identification}, {"_id": 1}) is not None

    async def existing_identifications(self, identifications: Iterable[str]) -> List[str]:
        documents = await self.collection.find(
            {"identification": {"$in": list(identifications)}}, {"identification": 1}
        ).to_list(length=None)
        return [document["identification"] for document in documents]

    async def insert(self, author: Author) -> Author:
        await self.collection.insert_one(author.to_document())
        logger.debug("Inserted author", author_id=author.id)
        return author

    async def insert_many(self, authors: List[Author]) -> List[Author]:
        if authors:
            await self.collection.insert_many([author.to_document() for author in authors], ordered=True)
            logger.debug("Inserted authors", count=len(authors))
        return authors

    async def replace(self, author: Author) -> None:
        document = author.to_document()
        document.pop("_id")
        await self.collection.update_one({"_id": author.id}, {"$set": document})

    async def delete(self, author_id: int) -> None:
        """Delete the author and every link it participates in."""
        await self.db.author_books.delete_many({"author_id": author_id})
        await self.collection.delete_one({"_id": author_id})
        logger.debug("Deleted author", author_id=author_id)


class BookRepository:
    """Book documents keyed by an integer sequence."""

    def __init__(self, db: LibraryDatabase):
        self.db = db
        self.collection = db.books

    async def next_id(self) -> int:
        return await self.db.next_sequence(BOOK_SEQUENCE)

    async def count(self, spec: QuerySpec) -> int:
        return await count_matching(self.collection, spec)

    async def find(self, spec: QuerySpec) -> List[Book]:
        documents = await find_matching(self.collection, spec)
        return [Book.model_validate(document) for document in documents]

    async def get(self, book_id: int) -> Optional[Book]:
        document = await self.collection.find_one({"_id": book_id})
        return Book.model_validate(document) if document else None

    async def exists(self, book_id: int) -> bool:
        return await self.collection.find_one({"_id": book_id}, {"_id": 1}) is not None

    async def get_many(self, book_ids: Iterable[int]) -> List[Book]:
        documents = await self.collection.find({"_id": {"$in": list(book_ids)}}).to_list(length=None)
        return [Book.model_validate(document) for document in documents]

    async def insert(self, book: Book) -> Book:
        await self.collection.insert_one(book.to_document())
        logger.debug("Inserted book", book_id=book.id)
        return book

    async def insert_many(self, books: List[Book]) -> List[Book]:
        if books:
            await self.collection.insert_many([book.to_document() for book in books], ordered=True)
        return books

    async def update_title(self, book_id: int, title: str) -> None:
        await self.collection.update_one({"_id": book_id}, {"$set": {"title": title}})

    async def delete(self, book_id: int) -> None:
        """Delete the book with its author links and its comments."""
        await self.db.author_books.delete_many({"book_id": book_id})
        await self.db.comments.delete_many({"book_id": book_id})
        await self.collection.delete_one({"_id": book_id})
        logger.debug("Deleted book", book_id=book_id)


class AuthorBookRepository:
    """The ordered many-to-many links between authors and books."""

    def __init__(self, db: LibraryDatabase):
        self.collection = db.author_books

    async def for_book(self, book_id: int) -> List[AuthorBook]:
        documents = await self.collection.find({"book_id": book_id}).sort("order", 1).to_list(length=None)
        return [AuthorBook.model_validate(document) for document in documents]

    async def for_authors(self, author_ids: Iterable[int]) -> List[AuthorBook]:
        documents = await self.collection.find(
            {"author_id": {"$in": list(author_ids)}}
        ).sort([("book_id", 1)]).to_list(length=None)
        return [AuthorBook.model_validate(document) for document in documents]

    async def insert_many(self, links: List[AuthorBook]) -> None:
        if links:
            await self.collection.insert_many([link.to_document() for link in links], ordered=True)

    async def replace_for_book(self, book_id: int, author_ids: List[int]) -> List[AuthorBook]:
        """Rewrite the book's links; ``order`` is reassigned densely from the new list."""
        links = ordered_links(book_id, author_ids)
        await self.collection.delete_many({"book_id": book_id})
        await self.insert_many(links)
        return links


class CommentRepository:
    """
    Comment documents. Every read excludes soft-deleted comments unless the
    caller passes ``include_deleted=True``.
    """

    def __init__(self, db: LibraryDatabase):
        self.collection = db.comments

    @staticmethod
    def _scoped(filter_query: dict, include_deleted: bool) -> dict:
        if include_deleted:
            return filter_query
        return {**filter_query, "has_been_deleted": False}

    async def for_book(self, book_id: int, include_deleted: bool = False) -> List[Comment]:
        cursor = self.collection.find(self._scoped({"book_id": book_id}, include_deleted))
        documents = await cursor.sort([("published_at", -1), ("_id", 1)]).to_list(length=None)
        return [Comment.model_validate(document) for document in documents]

    async def get(
        self,
        comment_id: str,
        book_id: Optional[int] = None,
        include_deleted: bool = False,
    ) -> Optional[Comment]:
        filter_query = {"_id": comment_id}
        if book_id is not None:
            filter_query["book_id"] = book_id
        document = await self.collection.find_one(self._scoped(filter_query, include_deleted))
        return Comment.model_validate(document) if document else None

    async def insert(self, comment: Comment) -> Comment:
        await self.collection.insert_one(comment.to_document())
        logger.debug("Inserted comment", comment_id=comment.id, book_id=comment.book_id)
        return comment

    async def update_content(self, comment_id: str, content: str) -> None:
        await self.collection.update_one({"_id": comment_id}, {"$set": {"content": content}})

    async def soft_delete(self, comment_id: str) -> None:
        await self.collection.update_one({"_id": comment_id}, {"$set": {"has_been_deleted": True}})
        logger.debug("Soft-deleted comment", comment_id=comment_id)


class UserRepository:
    """User accounts; looked up by id or case-insensitively by email."""

    def __init__(self, db: LibraryDatabase):
        self.collection = db.users

    async def get_by_id(self, user_id: str) -> Optional[User]:
        document = await self.collection.find_one({"_id": user_id})
        return User.model_validate(document) if document else None

    async def get_by_email(self, email: str) -> Optional[User]:
        document = await self.collection.find_one({"normalized_email": email.lower()})
        return User.model_validate(document) if document else None

    async def get_many(self, user_ids: Iterable[str]) -> List[User]:
        documents = await self.collection.find({"_id": {"$in": list(user_ids)}}).to_list(length=None)
        return [User.model_validate(document) for document in documents]

    async def insert(self, user: User) -> User:
        await self.collection.insert_one(user.to_document())
        logger.debug("Inserted user", user_id=user.id)
        return user

    async def add_claim(self, user_id: str, claim: UserClaim) -> None:
        await self.collection.update_one({"_id": user_id}, {"$push": {"claims": claim.model_dump()}})

    async def update_birth_date(self, user_id: str, birth_date) -> None:
        await self.collection.update_one({"_id": user_id}, {"$set": {"birth_date": birth_date}})


class ErrorRepository:
    """Append-only audit log of unhandled failures."""

    def __init__(self, db: LibraryDatabase):
        self.collection = db.errors

    async def insert(self, error: ErrorLog) -> None:
        await self.collection.insert_one(error.to_document())
