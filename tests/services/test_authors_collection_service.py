"""
Unit tests for the bulk author operations.
"""

import pytest
import pytest_asyncio

from catalog.result import ResultErrorType
from catalog.schemas import CreateAuthor, CreateBook
from catalog.services.authors_collection import parse_author_ids


@pytest_asyncio.fixture
async def seeded(seed_author):
    john = await seed_author(first_name="John", last_name="Doe", identification=None)
    jane = await seed_author(first_name="Jane", last_name="Smith", identification="67890")
    return john, jane


@pytest.mark.parametrize("raw,expected", [
    ("1,1,2,2,1", [1, 2]),
    ("abc,xyz", []),
    ("3, x ,1,,3", [3, 1]),
    ("", []),
    ("1_0,2", [2]),
    ("\u0661,3", [3]),
    ("+4, 5 ,4.0", [4, 5]),
])
def test_parse_author_ids(raw, expected):
    assert parse_author_ids(raw) == expected


class TestGetAuthorsByIds:
    """Test cases for fetching several authors at once."""

    @pytest.mark.asyncio
    async def test_duplicates_collapse(self, authors_collection_service, seeded):
        john, jane = seeded
        ids = f"{john.id},{john.id},{jane.id},{jane.id},{john.id}"
        result = await authors_collection_service.get_authors_by_ids(ids)

        assert result.is_success
        assert [author.id for author in result.data] == [john.id, jane.id]

    @pytest.mark.asyncio
    async def test_no_valid_ids(self, authors_collection_service, seeded):
        result = await authors_collection_service.get_authors_by_ids("abc,xyz")
        assert result.error_type is ResultErrorType.BAD_REQUEST
        assert result.error_message == "No valid author IDs provided."

    @pytest.mark.asyncio
    async def test_any_missing_id_fails_the_request(self, authors_collection_service, seeded):
        john, _ = seeded
        result = await authors_collection_service.get_authors_by_ids(f"{john.id},999")
        assert result.error_type is ResultErrorType.NOT_FOUND
        assert "999" in result.error_message
        assert result.data is None

    @pytest.mark.asyncio
    async def test_books_are_included(self, authors_collection_service, seeded, seed_book):
        john, jane = seeded
        await seed_book(title="Shared", author_ids=[jane.id, john.id])

        result = await authors_collection_service.get_authors_by_ids(f"{jane.id}")

        assert [book.title for book in result.data[0].books] == ["Shared"]


class TestCreateAuthors:
    """Test cases for all-or-nothing creation."""

    @pytest.mark.asyncio
    async def test_empty_list_rejected(self, authors_collection_service):
        for payload in (None, []):
            result = await authors_collection_service.create_authors(payload)
            assert result.error_type is ResultErrorType.BAD_REQUEST
            assert result.error_message == "The list of authors cannot be empty."

    @pytest.mark.asyncio
    async def test_existing_identification_rejected(self, authors_collection_service, author_repository, seeded):
        result = await authors_collection_service.create_authors(
            [CreateAuthor(first_name="X", last_name="Y", identification="67890")]
        )

        assert result.error_type is ResultErrorType.BAD_REQUEST
        assert "67890" in result.error_message
        assert len(await author_repository.get_many([1, 2, 3])) == 2

    @pytest.mark.asyncio
    async def test_null_identification_is_accepted(self, authors_collection_service, author_repository, seeded):
        result = await authors_collection_service.create_authors([CreateAuthor(first_name="X", last_name="Y")])

        assert result.is_success
        created = await author_repository.get(result.data[0].id)
        assert created.identification is None
        assert created.full_name == "X Y"

    @pytest.mark.asyncio
    async def test_duplicates_within_batch_rejected(self, authors_collection_service, author_repository):
        result = await authors_collection_service.create_authors([
            CreateAuthor(first_name="A", last_name="One", identification="555"),
            CreateAuthor(first_name="B", last_name="Two", identification="555"),
            CreateAuthor(first_name="C", last_name="Three"),
        ])

        assert result.error_type is ResultErrorType.BAD_REQUEST
        assert result.error_message == "Duplicate identifications found in input: 555"
        assert await author_repository.get_many([1, 2, 3]) == []

    @pytest.mark.asyncio
    async def test_empty_identifications_in_batch_are_duplicates(self, authors_collection_service, author_repository):
        result = await authors_collection_service.create_authors([
            CreateAuthor(first_name="X", last_name="Y", identification=""),
            CreateAuthor(first_name="Z", last_name="W", identification=""),
        ])

        assert result.error_type is ResultErrorType.BAD_REQUEST
        assert result.error_message.startswith("Duplicate identifications found in input")
        assert await author_repository.get_many([1, 2]) == []

    @pytest.mark.asyncio
    async def test_empty_identification_conflicts_like_single_create(
        self, authors_collection_service, author_service, author_repository
    ):
        single = await author_service.create_author(CreateAuthor(first_name="X", last_name="Y", identification=""))
        batch = await authors_collection_service.create_authors(
            [CreateAuthor(first_name="Z", last_name="W", identification="")]
        )

        assert single.is_success
        assert batch.error_type is ResultErrorType.BAD_REQUEST
        assert batch.error_message.startswith("Some authors already exist with these identifications")
        assert len(await author_repository.get_many([1, 2])) == 1

    @pytest.mark.asyncio
    async def test_creates_every_author(self, authors_collection_service, author_service):
        result = await authors_collection_service.create_authors([
            CreateAuthor(first_name="A", last_name="One", identification="1"),
            CreateAuthor(first_name="B", last_name="Two", books=[CreateBook(title="Second Book")]),
        ])

        assert result.is_success
        assert [author.full_name for author in result.data] == ["A One", "B Two"]
        assert result.data[1].id == result.data[0].id + 1
        fetched = await author_service.get_author_by_id(result.data[1].id)
        assert [book.title for book in fetched.data.books] == ["Second Book"]
