"""
Author service: paged and filtered listing, lookup, creation, full and partial
update, and deletion with photo cleanup.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

import structlog
from pydantic import ValidationError

from catalog.models import Author, Book, ordered_links
from catalog.pagination import PagedResult, Pagination
from catalog.result import Result, ResultErrorType
from catalog.schemas import (
    AuthorFilter, AuthorOrderBy, CreateAuthor, CreateBook, GetAuthor, GetAuthorWithBooks,
    PatchAuthor, UpdateAuthor
)
from storage.archive import ArchiveFile, ArchiveStorage
from storage.query import QuerySpec
from storage.repositories import AuthorBookRepository, AuthorRepository, BookRepository

logger = structlog.get_logger(__name__)

CONTAINER = "authors"
LINK_COLLECTION = "author_books"

ORDER_FIELDS = {
    AuthorOrderBy.FIRST_NAME: "first_name",
    AuthorOrderBy.LAST_NAME: "last_name",
}
DEFAULT_ORDER_FIELD = "first_name"


def format_validation_errors(error: ValidationError) -> str:
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        messages.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(messages)


class AuthorService:
    """Author operations. Photos go through the archive storage port."""

    def __init__(
        self,
        authors: AuthorRepository,
        books: BookRepository,
        links: AuthorBookRepository,
        archive_storage: ArchiveStorage,
    ):
        self.authors = authors
        self.books = books
        self.links = links
        self.archive_storage = archive_storage

    async def get_authors(self, pagination: Pagination) -> Result[PagedResult[GetAuthor]]:
        spec = QuerySpec()
        total_records = await self.authors.count(spec)
        authors = await self.authors.find(spec.page(pagination))

        data = [GetAuthor.from_entity(author) for author in authors]
        return Result.success(PagedResult[GetAuthor].create(data, total_records, pagination))

    async def get_authors_with_filter(
        self,
        pagination: Pagination,
        author_filter: AuthorFilter,
    ) -> Result[PagedResult[GetAuthorWithBooks]]:
        spec = (
            QuerySpec()
            .contains("first_name", author_filter.first_name)
            .contains("last_name", author_filter.last_name)
            .has_value("photo_url", author_filter.has_photo)
            .has_related(LINK_COLLECTION, "author_id", author_filter.has_books)
        )

        order_field = ORDER_FIELDS.get(author_filter.order_by) if author_filter.order_by else None
        if order_field:
            spec.order(order_field, author_filter.ascending_order)
        else:
            spec.order(DEFAULT_ORDER_FIELD, ascending=True)

        total_records = await self.authors.count(spec)
        authors = await self.authors.find(spec.page(pagination))

        books_by_author: Dict[int, List[Book]] = {}
        if author_filter.include_books:
            books_by_author = await self.books_by_author(author.id for author in authors)

        data = [
            GetAuthorWithBooks.from_entity(author, books_by_author.get(author.id))
            for author in authors
        ]
        logger.debug(
            "Filtered authors",
            spec=repr(spec),
            total_records=total_records,
            returned=len(data),
        )
        return Result.success(PagedResult[GetAuthorWithBooks].create(data, total_records, pagination))

    async def books_by_author(self, author_ids: Iterable[int]) -> Dict[int, List[Book]]:
        links = await self.links.for_authors(list(author_ids))
        if not links:
            return {}
        books = {book.id: book for book in await self.books.get_many({link.book_id for link in links})}

        grouped: Dict[int, List[Book]] = defaultdict(list)
        for link in links:
            book = books.get(link.book_id)
            if book is not None:
                grouped[link.author_id].append(book)
        return grouped

    async def get_author_by_id(self, author_id: int) -> Result[GetAuthorWithBooks]:
        author = await self.authors.get(author_id)
        if author is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "Author not found")

        books_by_author = await self.books_by_author([author.id])
        return Result.success(GetAuthorWithBooks.from_entity(author, books_by_author.get(author.id)))

    async def _identification_taken(self, identification: Optional[str], author_id: Optional[int] = None) -> bool:
        if identification is None:
            return False
        if not await self.authors.identification_exists(identification):
            return False
        if author_id is None:
            return True
        current = await self.authors.get(author_id)
        return current is None or current.identification != identification

    async def create_author(
        self,
        create_author: CreateAuthor,
        photo: Optional[ArchiveFile] = None,
    ) -> Result[GetAuthor]:
        if await self._identification_taken(create_author.identification):
            logger.info("Author already exists", identification=create_author.identification)
            return Result.failure(ResultErrorType.BAD_REQUEST, "Author already exists")

        author = Author(
            id=await self.authors.next_id(),
            first_name=create_author.first_name,
            last_name=create_author.last_name,
            identification=create_author.identification,
        )

        if photo is not None:
            author.photo_url = await self.archive_storage.store(CONTAINER, photo)

        await self.authors.insert(author)

        await self.create_books_for(author.id, create_author.books)

        logger.info("Author created", author_id=author.id, books=len(create_author.books))
        return Result.success(GetAuthor.from_entity(author))

    async def create_books_for(self, author_id: int, books: List[CreateBook]) -> List[Book]:
        """Create new books with the author as their only author."""
        if not books:
            return []
        created = [Book(id=await self.books.next_id(), title=book.title) for book in books]
        await self.books.insert_many(created)
        links = []
        for book in created:
            links.extend(ordered_links(book.id, [author_id]))
        await self.links.insert_many(links)
        return created

    async def update_author(
        self,
        author_id: int,
        update_author: UpdateAuthor,
        photo: Optional[ArchiveFile] = None,
    ) -> Result[None]:
        author = await self.authors.get(author_id)
        if author is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "Author not found")

        if await self._identification_taken(update_author.identification, author_id):
            return Result.failure(ResultErrorType.BAD_REQUEST, "Author already exists")

        if photo is not None:
            author.photo_url = await self.archive_storage.edit(author.photo_url, CONTAINER, photo)

        author.first_name = update_author.first_name
        author.last_name = update_author.last_name
        author.identification = update_author.identification

        await self.authors.replace(author)
        logger.info("Author updated", author_id=author_id, photo_replaced=photo is not None)
        return Result.success()

    async def patch_author(self, author_id: int, patch: PatchAuthor) -> Result[None]:
        """Apply only the fields present in ``patch``, then validate the merged author."""
        author = await self.authors.get(author_id)
        if author is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "Author not found")

        merged = {
            "first_name": author.first_name,
            "last_name": author.last_name,
            "identification": author.identification,
        }
        for field in patch.model_fields_set:
            merged[field] = getattr(patch, field)

        try:
            patched = UpdateAuthor.model_validate(merged)
        except ValidationError as e:
            message = format_validation_errors(e)
            logger.info("Author patch rejected", author_id=author_id, errors=message)
            return Result.failure(ResultErrorType.BAD_REQUEST, message)

        if await self._identification_taken(patched.identification, author_id):
            return Result.failure(ResultErrorType.BAD_REQUEST, "Author already exists")

        author.first_name = patched.first_name
        author.last_name = patched.last_name
        author.identification = patched.identification
        await self.authors.replace(author)
        logger.info("Author patched", author_id=author_id, fields=sorted(patch.model_fields_set))
        return Result.success()

    async def delete_author(self, author_id: int) -> Result[None]:
        author = await self.authors.get(author_id)
        if author is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "Author not found")

        await self.authors.delete(author_id)
        logger.info("Author deleted", author_id=author_id)

        # The row is already gone; a failed photo cleanup leaves an orphaned file only
        try:
            await self.archive_storage.remove(author.photo_url, CONTAINER)
        except Exception as e:
            logger.error("Failed to remove author photo", author_id=author_id, photo_url=author.photo_url, error=str(e))

        return Result.success()
