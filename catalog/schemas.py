"""
Request and response schemas exchanged with the domain services.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from catalog.models import (
    Author, Book, BookTitle, Comment, CommentContent, Identification, PersonName, User
)


# Authors

class AuthorOrderBy(str, Enum):
    """Sortable author fields."""
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"


class CreateBook(BaseModel):
    title: BookTitle = Field(..., description="Book title")


class CreateAuthor(BaseModel):
    first_name: PersonName = Field(..., description="First name")
    last_name: PersonName = Field(..., description="Last name")
    identification: Optional[Identification] = Field(None, description="Unique external identification")
    books: List[CreateBook] = Field(default_factory=list, description="Books created along with the author")


class UpdateAuthor(BaseModel):
    """Full replacement of the author's editable fields."""
    first_name: PersonName = Field(..., description="First name")
    last_name: PersonName = Field(..., description="Last name")
    identification: Optional[Identification] = Field(None, description="Unique external identification")


class PatchAuthor(BaseModel):
    """
    Partial author update. Only the fields present in the document are applied;
    the merged author is validated with the same rules as a full update.
    """
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    identification: Optional[str] = None


class AuthorFilter(BaseModel):
    first_name: Optional[str] = Field(None, description="Substring of the first name")
    last_name: Optional[str] = Field(None, description="Substring of the last name")
    has_books: Optional[bool] = Field(None, description="Only authors with (true) or without (false) books")
    has_photo: Optional[bool] = Field(None, description="Only authors with (true) or without (false) photo")
    include_books: bool = Field(False, description="Embed the author's books in each record")
    order_by: Optional[AuthorOrderBy] = Field(None, description="Sort field")
    ascending_order: bool = Field(True, description="Sort direction")


class GetBook(BaseModel):
    id: int
    title: str

    @classmethod
    def from_entity(cls, book: Book) -> "GetBook":
        return cls(id=book.id, title=book.title)


class GetAuthor(BaseModel):
    id: int
    full_name: str
    photo_url: Optional[str] = None

    @classmethod
    def from_entity(cls, author: Author) -> "GetAuthor":
        return cls(id=author.id, full_name=author.full_name, photo_url=author.photo_url)


class GetAuthorWithBooks(GetAuthor):
    books: List[GetBook] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, author: Author, books: Optional[List[Book]] = None) -> "GetAuthorWithBooks":
        return cls(
            id=author.id,
            full_name=author.full_name,
            photo_url=author.photo_url,
            books=[GetBook.from_entity(book) for book in books or []],
        )


# Books

class CreateBookWithAuthors(CreateBook):
    authors_id: List[int] = Field(default_factory=list, description="Author ids in display order")


class UpdateBook(BaseModel):
    """
    ``title`` and ``authors_id`` are each optional. Leaving ``authors_id`` out keeps the
    current authors; an explicit empty list is rejected.
    """
    title: Optional[BookTitle] = Field(None, description="New title")
    authors_id: Optional[List[int]] = Field(None, description="Replacement author ids in display order")

    @field_validator("authors_id")
    @classmethod
    def validate_authors(cls, v):
        if v is not None and len(v) == 0:
            raise ValueError("At least one author must be specified.")
        return v


# Comments

class CreateComment(BaseModel):
    content: CommentContent = Field(..., description="Comment text")


class UpdateComment(CreateComment):
    pass


class PatchComment(BaseModel):
    content: Optional[str] = None


class GetComment(BaseModel):
    id: str
    content: str
    published_at: datetime
    user_id: str
    user_email: Optional[str] = None

    @classmethod
    def from_entity(cls, comment: Comment, user_email: Optional[str] = None) -> "GetComment":
        return cls(
            id=comment.id,
            content=comment.content,
            published_at=comment.published_at,
            user_id=comment.user_id,
            user_email=user_email,
        )


class GetBookWithAuthorsAndComments(GetBook):
    authors: List[GetAuthor] = Field(default_factory=list)
    comments: List[GetComment] = Field(default_factory=list)


# Users

class UserCredentials(BaseModel):
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, description="Password")


class EditClaim(BaseModel):
    email: EmailStr = Field(..., description="Target user email")


class UpdateUserProfile(BaseModel):
    birth_date: Optional[datetime] = Field(None, description="Birth date")


class GetUser(BaseModel):
    email: str
    birth_date: Optional[datetime] = None

    @classmethod
    def from_entity(cls, user: User) -> "GetUser":
        return cls(email=user.email, birth_date=user.birth_date)


class AuthenticationResponse(BaseModel):
    token: str
    expiration: datetime
