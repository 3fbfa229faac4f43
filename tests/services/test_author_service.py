"""
Unit tests for the author service.
Tests listing, filtering, identification uniqueness, photos and cascades.
"""

import pytest
import pytest_asyncio

from catalog.pagination import Pagination
from catalog.result import ResultErrorType
from catalog.schemas import AuthorFilter, AuthorOrderBy, CreateAuthor, CreateBook, PatchAuthor, UpdateAuthor
from storage.archive import ArchiveFile

PHOTO_URL = "http://localhost:8000/static/authors/photo.jpg"


@pytest.fixture
def photo():
    return ArchiveFile(filename="photo.jpg", content=b"jpeg", content_type="image/jpeg")


class TestGetAuthors:
    """Test cases for paged listing."""

    @pytest.mark.asyncio
    async def test_pages_report_total(self, author_service, seed_author):
        for i in range(12):
            await seed_author(first_name=f"Author{i:02d}")

        first = await author_service.get_authors(Pagination(page=1, records_per_page=5))
        last = await author_service.get_authors(Pagination(page=3, records_per_page=5))

        assert first.is_success
        assert len(first.data.data) == 5
        assert first.data.total_records == 12
        assert len(last.data.data) == 2
        assert last.data.has_next is False

    @pytest.mark.asyncio
    async def test_out_of_range_page_request_is_clamped(self, author_service, seed_author):
        await seed_author()
        result = await author_service.get_authors(Pagination(page=-3, records_per_page=0))
        assert result.data.page == 1
        assert result.data.records_per_page == 1
        assert len(result.data.data) == 1


class TestFilterAuthors:
    """Test cases for filtered listing."""

    @pytest_asyncio.fixture
    async def library(self, seed_author, seed_book):
        john = await seed_author(first_name="John", last_name="Doe", photo_url=PHOTO_URL)
        jane = await seed_author(first_name="Jane", last_name="Smith", identification="67890")
        adam = await seed_author(first_name="Adam", last_name="Brown")
        await seed_book(title="First", author_ids=[john.id])
        await seed_book(title="Second", author_ids=[jane.id, john.id])
        return john, jane, adam

    @pytest.mark.asyncio
    async def test_default_order_is_first_name(self, author_service, library):
        result = await author_service.get_authors_with_filter(Pagination(), AuthorFilter())
        assert [author.full_name for author in result.data.data] == ["Adam Brown", "Jane Smith", "John Doe"]

    @pytest.mark.asyncio
    async def test_order_by_last_name_descending(self, author_service, library):
        author_filter = AuthorFilter(order_by=AuthorOrderBy.LAST_NAME, ascending_order=False)
        result = await author_service.get_authors_with_filter(Pagination(), author_filter)
        assert [author.full_name for author in result.data.data] == ["Jane Smith", "John Doe", "Adam Brown"]

    @pytest.mark.asyncio
    async def test_has_books(self, author_service, library):
        with_books = await author_service.get_authors_with_filter(Pagination(), AuthorFilter(has_books=True))
        without_books = await author_service.get_authors_with_filter(Pagination(), AuthorFilter(has_books=False))
        assert {a.full_name for a in with_books.data.data} == {"John Doe", "Jane Smith"}
        assert [a.full_name for a in without_books.data.data] == ["Adam Brown"]

    @pytest.mark.asyncio
    async def test_has_photo(self, author_service, library):
        result = await author_service.get_authors_with_filter(Pagination(), AuthorFilter(has_photo=True))
        assert [a.full_name for a in result.data.data] == ["John Doe"]
        result = await author_service.get_authors_with_filter(Pagination(), AuthorFilter(has_photo=False))
        assert result.data.total_records == 2

    @pytest.mark.asyncio
    async def test_name_substring_and_books(self, author_service, library):
        author_filter = AuthorFilter(first_name="jo", include_books=True)
        result = await author_service.get_authors_with_filter(Pagination(), author_filter)
        assert result.data.total_records == 1
        assert sorted(book.title for book in result.data.data[0].books) == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_books_are_omitted_unless_requested(self, author_service, library):
        result = await author_service.get_authors_with_filter(Pagination(), AuthorFilter(first_name="John"))
        assert result.data.data[0].books == []


class TestCreateAuthor:
    """Test cases for author creation."""

    @pytest.mark.asyncio
    async def test_duplicate_identification_rejected(self, author_service, seed_author):
        await seed_author(identification="12345")
        result = await author_service.create_author(
            CreateAuthor(first_name="Other", last_name="Person", identification="12345")
        )
        assert result.error_type is ResultErrorType.BAD_REQUEST
        assert result.error_message == "Author already exists"

    @pytest.mark.asyncio
    async def test_null_identification_never_conflicts(self, author_service, seed_author):
        await seed_author(identification=None)
        first = await author_service.create_author(CreateAuthor(first_name="Ann", last_name="Lee"))
        second = await author_service.create_author(CreateAuthor(first_name="Bob", last_name="Lee"))
        assert first.is_success and second.is_success
        assert first.data.id != second.data.id

    @pytest.mark.asyncio
    async def test_photo_is_stored(self, author_service, mock_archive_storage, photo):
        result = await author_service.create_author(CreateAuthor(first_name="Ann", last_name="Lee"), photo)
        assert result.data.photo_url == PHOTO_URL
        mock_archive_storage.store.assert_awaited_once_with("authors", photo)

    @pytest.mark.asyncio
    async def test_without_photo_reference_is_null(self, author_service, mock_archive_storage):
        result = await author_service.create_author(CreateAuthor(first_name="Ann", last_name="Lee"))
        assert result.data.photo_url is None
        mock_archive_storage.store.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nested_books_are_created_and_linked(self, author_service):
        create = CreateAuthor(
            first_name="Ann", last_name="Lee", books=[CreateBook(title="One"), CreateBook(title="Two")]
        )
        created = await author_service.create_author(create)

        fetched = await author_service.get_author_by_id(created.data.id)
        assert sorted(book.title for book in fetched.data.books) == ["One", "Two"]


class TestUpdateAuthor:
    """Test cases for full and partial updates."""

    @pytest.mark.asyncio
    async def test_missing_author(self, author_service):
        result = await author_service.update_author(999, UpdateAuthor(first_name="A", last_name="B"))
        assert result.error_type is ResultErrorType.NOT_FOUND
        assert result.error_message == "Author not found"

    @pytest.mark.asyncio
    async def test_replaces_all_fields(self, author_service, author_repository, seed_author):
        author = await seed_author(identification="111", photo_url=PHOTO_URL)
        result = await author_service.update_author(author.id, UpdateAuthor(first_name="Johnny", last_name="Dee"))

        assert result.is_success
        stored = await author_repository.get(author.id)
        assert stored.full_name == "Johnny Dee"
        assert stored.identification is None
        assert stored.photo_url == PHOTO_URL

    @pytest.mark.asyncio
    async def test_keeping_own_identification_is_allowed(self, author_service, seed_author):
        author = await seed_author(identification="111")
        update = UpdateAuthor(first_name="John", last_name="Doe", identification="111")
        assert (await author_service.update_author(author.id, update)).is_success

    @pytest.mark.asyncio
    async def test_taking_another_identification_is_rejected(self, author_service, seed_author):
        await seed_author(identification="111")
        author = await seed_author(identification="222")
        update = UpdateAuthor(first_name="John", last_name="Doe", identification="111")
        result = await author_service.update_author(author.id, update)
        assert result.error_message == "Author already exists"

    @pytest.mark.asyncio
    async def test_new_photo_replaces_old(self, author_service, mock_archive_storage, seed_author, photo):
        author = await seed_author(photo_url="http://localhost:8000/static/authors/old.jpg")
        await author_service.update_author(author.id, UpdateAuthor(first_name="John", last_name="Doe"), photo)
        mock_archive_storage.edit.assert_awaited_once_with(
            "http://localhost:8000/static/authors/old.jpg", "authors", photo
        )

    @pytest.mark.asyncio
    async def test_patch_applies_present_fields_only(self, author_service, author_repository, seed_author):
        author = await seed_author(identification="111")
        result = await author_service.patch_author(author.id, PatchAuthor(last_name="Smith"))

        assert result.is_success
        stored = await author_repository.get(author.id)
        assert stored.full_name == "John Smith"
        assert stored.identification == "111"

    @pytest.mark.asyncio
    async def test_patch_can_clear_identification(self, author_service, author_repository, seed_author):
        author = await seed_author(identification="111")
        await author_service.patch_author(author.id, PatchAuthor(identification=None))
        assert (await author_repository.get(author.id)).identification is None

    @pytest.mark.asyncio
    async def test_patch_validates_merged_state(self, author_service, author_repository, seed_author):
        author = await seed_author()
        result = await author_service.patch_author(author.id, PatchAuthor(first_name="lowercase"))

        assert result.error_type is ResultErrorType.BAD_REQUEST
        assert "The first letter must be uppercase." in result.error_message
        assert (await author_repository.get(author.id)).first_name == "John"


class TestDeleteAuthor:
    """Test cases for deletion."""

    @pytest.mark.asyncio
    async def test_missing_author(self, author_service):
        result = await author_service.delete_author(42)
        assert result.error_type is ResultErrorType.NOT_FOUND

    @pytest.mark.asyncio
    async def test_deletes_links_and_photo(
        self, author_service, author_repository, link_repository, mock_archive_storage, seed_author, seed_book
    ):
        author = await seed_author(photo_url=PHOTO_URL)
        book = await seed_book(author_ids=[author.id])

        result = await author_service.delete_author(author.id)

        assert result.is_success
        assert await author_repository.get(author.id) is None
        assert await link_repository.for_book(book.id) == []
        mock_archive_storage.remove.assert_awaited_once_with(PHOTO_URL, "authors")

    @pytest.mark.asyncio
    async def test_photo_cleanup_failure_keeps_deletion(
        self, author_service, author_repository, mock_archive_storage, seed_author
    ):
        author = await seed_author(photo_url=PHOTO_URL)
        mock_archive_storage.remove.side_effect = OSError("disk unavailable")

        result = await author_service.delete_author(author.id)

        assert result.is_success
        assert await author_repository.get(author.id) is None
