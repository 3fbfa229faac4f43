"""
Book endpoints.
"""

from fastapi import APIRouter, Depends, Response, status

from api.auth import general_rate_limit, require_admin
from api.config import config as api_config
from api.dependencies import get_book_service
from api.responses import json_response, paged_response, unwrap
from catalog.pagination import PagedResult, Pagination
from catalog.schemas import CreateBookWithAuthors, GetBook, GetBookWithAuthorsAndComments, UpdateBook
from catalog.services import BookService

router = APIRouter(prefix="/books", tags=["Books"], dependencies=[Depends(general_rate_limit)])


@router.get("", response_model=PagedResult[GetBook])
async def get_books(
    page: int = 1,
    records_per_page: int = 10,
    service: BookService = Depends(get_book_service),
):
    """Get books, one page at a time."""
    pagination = Pagination(page=page, records_per_page=records_per_page)
    return paged_response(await service.get_books(pagination))


@router.get("/{book_id}", response_model=GetBookWithAuthorsAndComments)
async def get_book(book_id: int, service: BookService = Depends(get_book_service)):
    """
    Get a book with its authors (in display order) and its comments (newest first).
    """
    return unwrap(await service.get_book_by_id(book_id))


@router.post("", response_model=GetBook, status_code=status.HTTP_201_CREATED)
async def create_book(
    create_book: CreateBookWithAuthors,
    service: BookService = Depends(get_book_service),
    claims: dict = Depends(require_admin),
):
    """
    Create a book.

    - **authors_id**: Existing author ids; their order here is the display order
    """
    book = unwrap(await service.create_book(create_book))
    location = f"{api_config.api_prefix}{router.prefix}/{book.id}"
    return json_response(book, status.HTTP_201_CREATED, headers={"Location": location})


@router.put("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_book(
    book_id: int,
    update_book: UpdateBook,
    service: BookService = Depends(get_book_service),
    claims: dict = Depends(require_admin),
):
    """
    Update a book. Omit ``title`` or ``authors_id`` to keep the current value.
    """
    unwrap(await service.update_book(book_id, update_book))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: int,
    service: BookService = Depends(get_book_service),
    claims: dict = Depends(require_admin),
):
    unwrap(await service.delete_book(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
