"""
Book service: paged listing, detail with authors and comments, creation with an
ordered author list, update and deletion.
"""

from typing import List

import structlog

from catalog.models import Book
from catalog.pagination import PagedResult, Pagination
from catalog.result import Result, ResultErrorType
from catalog.schemas import (
    CreateBookWithAuthors, GetAuthor, GetBook, GetBookWithAuthorsAndComments, GetComment, UpdateBook
)
from storage.query import QuerySpec
from storage.repositories import (
    AuthorBookRepository, AuthorRepository, BookRepository, CommentRepository, UserRepository
)

logger = structlog.get_logger(__name__)


def _join_ids(ids) -> str:
    return ", ".join(str(i) for i in ids)


class BookService:

    def __init__(
        self,
        books: BookRepository,
        authors: AuthorRepository,
        links: AuthorBookRepository,
        comments: CommentRepository,
        users: UserRepository,
    ):
        self.books = books
        self.authors = authors
        self.links = links
        self.comments = comments
        self.users = users

    async def get_books(self, pagination: Pagination) -> Result[PagedResult[GetBook]]:
        spec = QuerySpec()
        total_records = await self.books.count(spec)
        books = await self.books.find(spec.page(pagination))

        data = [GetBook.from_entity(book) for book in books]
        return Result.success(PagedResult[GetBook].create(data, total_records, pagination))

    async def get_book_by_id(self, book_id: int) -> Result[GetBookWithAuthorsAndComments]:
        book = await self.books.get(book_id)
        if book is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "Book not found")

        links = await self.links.for_book(book_id)
        authors = {author.id: author for author in await self.authors.get_many(link.author_id for link in links)}

        comments = await self.comments.for_book(book_id)
        emails = {}
        if comments:
            users = await self.users.get_many({comment.user_id for comment in comments})
            emails = {user.id: user.email for user in users}

        return Result.success(GetBookWithAuthorsAndComments(
            id=book.id,
            title=book.title,
            authors=[GetAuthor.from_entity(authors[link.author_id]) for link in links if link.author_id in authors],
            comments=[GetComment.from_entity(comment, emails.get(comment.user_id)) for comment in comments],
        ))

    async def _validate_author_ids(self, author_ids: List[int], missing_error: ResultErrorType) -> Result[None]:
        duplicates = sorted({i for i in author_ids if author_ids.count(i) > 1})
        if duplicates:
            return Result.failure(ResultErrorType.BAD_REQUEST, f"Duplicate authors: {_join_ids(duplicates)}")

        existing = set(await self.authors.existing_ids(author_ids))
        missing = [i for i in author_ids if i not in existing]
        if missing:
            logger.info("Book references unknown authors", missing=missing)
            return Result.failure(missing_error, f"Authors not found: {_join_ids(missing)}")
        return Result.success()

    async def create_book(self, create_book: CreateBookWithAuthors) -> Result[GetBook]:
        if not create_book.authors_id:
            return Result.failure(ResultErrorType.BAD_REQUEST, "At least one author is required")

        validation = await self._validate_author_ids(create_book.authors_id, ResultErrorType.NOT_FOUND)
        if not validation.is_success:
            return Result.propagate(validation)

        book = Book(id=await self.books.next_id(), title=create_book.title)
        await self.books.insert(book)
        await self.links.replace_for_book(book.id, create_book.authors_id)

        logger.info("Book created", book_id=book.id, authors=create_book.authors_id)
        return Result.success(GetBook.from_entity(book))

    async def update_book(self, book_id: int, update_book: UpdateBook) -> Result[None]:
        """Replace the title and/or the author list; omitted fields are left as they are."""
        if not await self.books.exists(book_id):
            return Result.failure(ResultErrorType.NOT_FOUND, "Book not found")

        if update_book.authors_id:
            validation = await self._validate_author_ids(update_book.authors_id, ResultErrorType.BAD_REQUEST)
            if not validation.is_success:
                return Result.propagate(validation)

        if update_book.title is not None:
            await self.books.update_title(book_id, update_book.title)

        if update_book.authors_id:
            await self.links.replace_for_book(book_id, update_book.authors_id)

        logger.info(
            "Book updated",
            book_id=book_id,
            title_changed=update_book.title is not None,
            authors_changed=bool(update_book.authors_id),
        )
        return Result.success()

    async def delete_book(self, book_id: int) -> Result[None]:
        if not await self.books.exists(book_id):
            return Result.failure(ResultErrorType.NOT_FOUND, "Book not found")

        await self.books.delete(book_id)
        logger.info("Book deleted", book_id=book_id)
        return Result.success()
