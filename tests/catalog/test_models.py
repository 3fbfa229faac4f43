"""
Tests for entity and schema validation.
"""

import pytest
from pydantic import ValidationError

from catalog.models import ADMIN_CLAIM_TYPE, Author, Comment, User, UserClaim, ordered_links, utc_now
from catalog.permissions import is_admin, owns
from catalog.schemas import (
    CreateAuthor, CreateBookWithAuthors, GetAuthorWithBooks, UpdateBook, UserCredentials
)


class TestAuthorValidation:
    """Test cases for author name rules."""

    def test_valid_author(self):
        author = CreateAuthor(first_name="Jane", last_name="Smith", identification="67890")
        assert author.books == []

    def test_lowercase_first_letter_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            CreateAuthor(first_name="jane", last_name="Smith")
        assert "The first letter must be uppercase." in str(exc_info.value)

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            CreateAuthor(first_name="   ", last_name="Smith")

    def test_name_length_limit(self):
        with pytest.raises(ValidationError):
            CreateAuthor(first_name="J" + "a" * 150, last_name="Smith")

    def test_identification_length_limit(self):
        with pytest.raises(ValidationError):
            CreateAuthor(first_name="Jane", last_name="Smith", identification="1" * 51)

    def test_document_round_trip_uses_mongo_key(self):
        author = Author(id=7, first_name="Jane", last_name="Smith")
        document = author.to_document()
        assert document["_id"] == 7
        assert "id" not in document
        assert Author.model_validate(document).full_name == "Jane Smith"


class TestBookSchemas:
    """Test cases for book request schemas."""

    def test_update_book_fields_are_optional(self):
        update = UpdateBook()
        assert update.title is None
        assert update.authors_id is None

    def test_update_book_rejects_empty_author_list(self):
        with pytest.raises(ValidationError) as exc_info:
            UpdateBook(authors_id=[])
        assert "At least one author must be specified." in str(exc_info.value)

    def test_create_book_title_limit(self):
        with pytest.raises(ValidationError):
            CreateBookWithAuthors(title="x" * 201, authors_id=[1])

    def test_ordered_links_are_dense(self):
        links = ordered_links(5, [3, 1, 2])
        assert [(link.author_id, link.order) for link in links] == [(3, 0), (1, 1), (2, 2)]
        assert all(link.book_id == 5 for link in links)

    def test_author_with_books_defaults_to_empty_list(self):
        author = Author(id=1, first_name="John", last_name="Doe")
        assert GetAuthorWithBooks.from_entity(author).books == []


class TestUserModels:
    """Test cases for users, claims and authorization predicates."""

    @pytest.fixture
    def user(self):
        return User(
            email="Reader@Example.com",
            normalized_email="reader@example.com",
            password_hash="hash",
            password_salt="salt",
        )

    def test_credentials_require_valid_email(self):
        with pytest.raises(ValidationError):
            UserCredentials(email="not-an-email", password="Secret1!")

    def test_is_admin_on_user(self, user):
        assert is_admin(user) is False
        user.claims.append(UserClaim(type=ADMIN_CLAIM_TYPE, value="true"))
        assert is_admin(user) is True

    def test_is_admin_on_claims(self):
        assert is_admin({"email": "a@b.com", ADMIN_CLAIM_TYPE: "true"}) is True
        assert is_admin({"email": "a@b.com"}) is False
        assert is_admin(None) is False

    def test_owns(self, user):
        comment = Comment(content="Nice", book_id=1, user_id=user.id)
        assert owns(user, comment) is True
        assert owns(None, comment) is False
        comment.user_id = "someone-else"
        assert owns(user, comment) is False

    def test_comment_defaults(self):
        before = utc_now()
        comment = Comment(content="Nice", book_id=1, user_id="u1")
        assert comment.has_been_deleted is False
        assert comment.published_at >= before
        assert comment.id

    def test_blank_comment_rejected(self):
        with pytest.raises(ValidationError):
            Comment(content="  ", book_id=1, user_id="u1")
