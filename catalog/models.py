"""
Pydantic models for the library entities as they are stored.

Every entity maps its ``id`` to the MongoDB ``_id`` key through an alias, so
``model_dump(by_alias=True)`` produces the stored document and
``model_validate(document)`` reads it back.
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

ADMIN_CLAIM_TYPE = "isAdmin"
EMAIL_CLAIM_TYPE = "email"


def utc_now() -> datetime:
    """Current server time; Mongo keeps millisecond precision, so round to it."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def new_identifier() -> str:
    return str(uuid.uuid4())


def require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("The field is required.")
    return value


def first_letter_uppercase(value: Optional[str]) -> Optional[str]:
    if value and not value[0].isupper():
        raise ValueError("The first letter must be uppercase.")
    return value


PersonName = Annotated[
    str,
    StringConstraints(min_length=1, max_length=150),
    AfterValidator(require_text),
    AfterValidator(first_letter_uppercase),
]
Identification = Annotated[str, StringConstraints(max_length=50)]
BookTitle = Annotated[str, StringConstraints(min_length=1, max_length=200), AfterValidator(require_text)]
CommentContent = Annotated[str, StringConstraints(min_length=1), AfterValidator(require_text)]


class Entity(BaseModel):
    """Base for stored entities."""
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class Author(Entity):
    """An author; owns no books, only links to them."""
    id: int = Field(..., alias="_id", description="Server-assigned identifier")
    first_name: PersonName = Field(..., description="First name")
    last_name: PersonName = Field(..., description="Last name")
    identification: Optional[Identification] = Field(None, description="Unique external identification")
    photo_url: Optional[str] = Field(None, description="Reference returned by the archive storage")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Book(Entity):
    """A book. Authors are attached through AuthorBook links."""
    id: int = Field(..., alias="_id", description="Server-assigned identifier")
    title: BookTitle = Field(..., description="Book title")


class AuthorBook(BaseModel):
    """Link between an author and a book; ``order`` is the author's position on the book."""
    author_id: int = Field(..., description="Linked author")
    book_id: int = Field(..., description="Linked book")
    order: int = Field(0, ge=0, description="Zero-based display position")

    def to_document(self) -> dict:
        return self.model_dump()


def ordered_links(book_id: int, author_ids: List[int]) -> List[AuthorBook]:
    """Build the links of a book with dense ``order`` values following the input order."""
    return [
        AuthorBook(author_id=author_id, book_id=book_id, order=position)
        for position, author_id in enumerate(author_ids)
    ]


class Comment(Entity):
    """A user's comment on a book. Deletion only sets ``has_been_deleted``."""
    id: str = Field(default_factory=new_identifier, alias="_id", description="Comment identifier")
    content: CommentContent = Field(..., description="Comment text")
    published_at: datetime = Field(default_factory=utc_now, description="Creation time (server clock)")
    book_id: int = Field(..., description="Commented book")
    user_id: str = Field(..., description="Owning user")
    has_been_deleted: bool = Field(False, description="Soft-delete flag")


class UserClaim(BaseModel):
    type: str
    value: str


class User(Entity):
    """A registered user. The password is stored as a salted PBKDF2 hash."""
    id: str = Field(default_factory=new_identifier, alias="_id", description="User identifier")
    email: str = Field(..., description="Login email")
    normalized_email: str = Field(..., description="Lower-cased email used for lookups")
    password_hash: str = Field(..., description="Base64 PBKDF2 hash")
    password_salt: str = Field(..., description="Base64 salt")
    birth_date: Optional[datetime] = Field(None, description="Birth date")
    claims: List[UserClaim] = Field(default_factory=list, description="Granted claims")


class ErrorLog(Entity):
    """Audit record of an unhandled failure."""
    id: str = Field(default_factory=new_identifier, alias="_id")
    message: str
    stack_trace: Optional[str] = None
    date: datetime = Field(default_factory=utc_now)
