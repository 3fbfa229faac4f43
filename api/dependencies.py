"""
Service wiring for the API.

The container is built once at startup and kept on ``app.state.services``;
route dependencies read the service they need from it.
"""

from dataclasses import dataclass

from fastapi import Request

from catalog.services import (
    AuthorService, AuthorsCollectionService, BookService, CommentService,
    HashService, PasswordValidator, TokenService, UserService
)
from storage.archive import ArchiveStorage, LocalArchiveStorage
from storage.database import LibraryDatabase
from storage.repositories import (
    AuthorBookRepository, AuthorRepository, BookRepository, CommentRepository,
    ErrorRepository, UserRepository
)
from utilities.config import LibraryConfig


@dataclass
class ServiceContainer:
    database: LibraryDatabase
    tokens: TokenService
    authors: AuthorService
    authors_collection: AuthorsCollectionService
    books: BookService
    comments: CommentService
    users: UserService
    errors: ErrorRepository

    @classmethod
    def build(
        cls,
        database: LibraryDatabase,
        settings: LibraryConfig,
        archive_storage: ArchiveStorage = None,
    ) -> "ServiceContainer":
        """Create repositories over ``database`` and the services on top of them."""
        if archive_storage is None:
            archive_storage = LocalArchiveStorage(settings.get_archive_root_path(), settings.archive_base_url)

        author_repository = AuthorRepository(database)
        book_repository = BookRepository(database)
        link_repository = AuthorBookRepository(database)
        comment_repository = CommentRepository(database)
        user_repository = UserRepository(database)

        tokens = TokenService.from_config(settings)
        user_service = UserService(user_repository, tokens, HashService(), PasswordValidator())
        author_service = AuthorService(author_repository, book_repository, link_repository, archive_storage)

        return cls(
            database=database,
            tokens=tokens,
            authors=author_service,
            authors_collection=AuthorsCollectionService(author_repository, author_service),
            books=BookService(
                book_repository, author_repository, link_repository, comment_repository, user_repository
            ),
            comments=CommentService(comment_repository, book_repository, user_repository, user_service),
            users=user_service,
            errors=ErrorRepository(database),
        )


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_author_service(request: Request) -> AuthorService:
    return get_services(request).authors


def get_authors_collection_service(request: Request) -> AuthorsCollectionService:
    return get_services(request).authors_collection


def get_book_service(request: Request) -> BookService:
    return get_services(request).books


def get_comment_service(request: Request) -> CommentService:
    return get_services(request).comments


def get_user_service(request: Request) -> UserService:
    return get_services(request).users
