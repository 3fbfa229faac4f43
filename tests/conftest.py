"""
Pytest configuration and shared fixtures.

Repository and service tests run against an in-memory, motor-compatible
database from mongomock-motor.
"""

import pytest
from mongomock_motor import AsyncMongoMockClient
from unittest.mock import AsyncMock

from catalog.models import ADMIN_CLAIM_TYPE, Author, Book, Comment, User, UserClaim, ordered_links
from catalog.services import (
    AuthorService, AuthorsCollectionService, BookService, CommentService,
    HashService, PasswordValidator, TokenService, UserService
)
from storage.archive import ArchiveStorage
from storage.database import LibraryDatabase
from storage.repositories import (
    AuthorBookRepository, AuthorRepository, BookRepository, CommentRepository,
    ErrorRepository, UserRepository
)

TEST_SIGNING_KEY = "test-signing-key-for-the-library-api-0123456789"
TEST_PASSWORD = "Secret1!"
PHOTO_URL = "http://localhost:8000/static/authors/photo.jpg"


@pytest.fixture
def mongo_database():
    """In-memory database, also used for direct assertions on stored documents."""
    return AsyncMongoMockClient()["library_test"]


@pytest.fixture
def library_db(mongo_database):
    return LibraryDatabase(mongo_database)


@pytest.fixture
def author_repository(library_db):
    return AuthorRepository(library_db)


@pytest.fixture
def book_repository(library_db):
    return BookRepository(library_db)


@pytest.fixture
def link_repository(library_db):
    return AuthorBookRepository(library_db)


@pytest.fixture
def comment_repository(library_db):
    return CommentRepository(library_db)


@pytest.fixture
def user_repository(library_db):
    return UserRepository(library_db)


@pytest.fixture
def error_repository(library_db):
    return ErrorRepository(library_db)


@pytest.fixture
def mock_archive_storage():
    """Archive storage port that records calls instead of touching the disk."""
    storage = AsyncMock(spec=ArchiveStorage)
    storage.store.return_value = PHOTO_URL
    storage.edit.return_value = PHOTO_URL
    storage.remove.return_value = None
    return storage


@pytest.fixture
def token_service():
    return TokenService(
        signing_key=TEST_SIGNING_KEY,
        issuer="library-api",
        audience="library-clients",
        expiration_minutes=60,
    )


@pytest.fixture
def hash_service():
    return HashService()


@pytest.fixture
def author_service(author_repository, book_repository, link_repository, mock_archive_storage):
    return AuthorService(author_repository, book_repository, link_repository, mock_archive_storage)


@pytest.fixture
def authors_collection_service(author_repository, author_service):
    return AuthorsCollectionService(author_repository, author_service)


@pytest.fixture
def book_service(book_repository, author_repository, link_repository, comment_repository, user_repository):
    return BookService(book_repository, author_repository, link_repository, comment_repository, user_repository)


@pytest.fixture
def user_service(user_repository, token_service, hash_service):
    return UserService(user_repository, token_service, hash_service, PasswordValidator())


@pytest.fixture
def comment_service(comment_repository, book_repository, user_repository, user_service):
    return CommentService(comment_repository, book_repository, user_repository, user_service)


@pytest.fixture
def seed_author(author_repository):
    """Factory inserting an author with the next id."""
    async def _seed(first_name="John", last_name="Doe", identification=None, photo_url=None):
        author = Author(
            id=await author_repository.next_id(),
            first_name=first_name,
            last_name=last_name,
            identification=identification,
            photo_url=photo_url,
        )
        return await author_repository.insert(author)
    return _seed


@pytest.fixture
def seed_book(book_repository, link_repository):
    """Factory inserting a book linked to the given authors in order."""
    async def _seed(title="Test Book", author_ids=()):
        book = Book(id=await book_repository.next_id(), title=title)
        await book_repository.insert(book)
        await link_repository.insert_many(ordered_links(book.id, list(author_ids)))
        return book
    return _seed


@pytest.fixture
def seed_user(user_repository, hash_service):
    """Factory inserting a user whose password is TEST_PASSWORD."""
    async def _seed(email="reader@example.com", admin=False):
        hashed = hash_service.hash(TEST_PASSWORD)
        user = User(
            email=email,
            normalized_email=email.lower(),
            password_hash=hashed.hash,
            password_salt=hashed.salt_b64,
            claims=[UserClaim(type=ADMIN_CLAIM_TYPE, value="true")] if admin else [],
        )
        return await user_repository.insert(user)
    return _seed


@pytest.fixture
def seed_comment(comment_repository):
    """Factory inserting a comment."""
    async def _seed(book_id, user_id, content="Great book", published_at=None):
        comment = Comment(content=content, book_id=book_id, user_id=user_id)
        if published_at is not None:
            comment.published_at = published_at
        return await comment_repository.insert(comment)
    return _seed
