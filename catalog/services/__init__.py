"""Domain services. Every public operation returns a ``Result``."""

from catalog.services.authors import AuthorService
from catalog.services.authors_collection import AuthorsCollectionService
from catalog.services.books import BookService
from catalog.services.comments import CommentService
from catalog.services.security import HashService, PasswordValidator, TokenService
from catalog.services.users import UserService

__all__ = [
    "AuthorService",
    "AuthorsCollectionService",
    "BookService",
    "CommentService",
    "HashService",
    "PasswordValidator",
    "TokenService",
    "UserService",
]
