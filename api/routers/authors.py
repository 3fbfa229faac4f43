"""
Author endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from api.auth import general_rate_limit, require_admin
from api.config import config as api_config
from api.dependencies import get_author_service
from api.responses import json_response, paged_response, unwrap
from catalog.pagination import PagedResult, Pagination
from catalog.schemas import (
    AuthorFilter, AuthorOrderBy, CreateAuthor, GetAuthor, GetAuthorWithBooks,
    PatchAuthor, UpdateAuthor
)
from catalog.services import AuthorService
from storage.archive import ArchiveFile

router = APIRouter(prefix="/authors", tags=["Authors"], dependencies=[Depends(general_rate_limit)])


async def read_photo(photo: Optional[UploadFile]) -> Optional[ArchiveFile]:
    """Load an uploaded photo into memory; an absent or empty upload yields None."""
    if photo is None or not photo.filename:
        return None
    content = await photo.read()
    if not content:
        return None
    return ArchiveFile(filename=photo.filename, content=content, content_type=photo.content_type)


def validate_form(model, **fields):
    """Validate form fields with a schema, reporting problems like a JSON body would."""
    try:
        return model.model_validate(fields)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.get("", response_model=PagedResult[GetAuthor])
async def get_authors(
    page: int = 1,
    records_per_page: int = 10,
    service: AuthorService = Depends(get_author_service),
):
    """
    Get authors, one page at a time.

    - **page**: Page number (values below 1 are treated as 1)
    - **records_per_page**: Items per page (clamped to 1-50)
    """
    pagination = Pagination(page=page, records_per_page=records_per_page)
    return paged_response(await service.get_authors(pagination))


@router.get("/filter", response_model=PagedResult[GetAuthorWithBooks])
async def filter_authors(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    has_books: Optional[bool] = None,
    has_photo: Optional[bool] = None,
    include_books: bool = False,
    order_by: Optional[AuthorOrderBy] = None,
    ascending_order: bool = True,
    page: int = 1,
    records_per_page: int = 10,
    service: AuthorService = Depends(get_author_service),
):
    """
    Filter, sort and page authors.

    - **first_name** / **last_name**: Case-insensitive substring match
    - **has_books** / **has_photo**: Tri-state filters; omit to ignore
    - **include_books**: Embed each author's books
    - **order_by**: first_name or last_name (default first_name)
    """
    author_filter = AuthorFilter(
        first_name=first_name,
        last_name=last_name,
        has_books=has_books,
        has_photo=has_photo,
        include_books=include_books,
        order_by=order_by,
        ascending_order=ascending_order,
    )
    pagination = Pagination(page=page, records_per_page=records_per_page)
    return paged_response(await service.get_authors_with_filter(pagination, author_filter))


@router.get("/{author_id}", response_model=GetAuthorWithBooks)
async def get_author(author_id: int, service: AuthorService = Depends(get_author_service)):
    """Get an author with their books."""
    return unwrap(await service.get_author_by_id(author_id))


@router.post("", response_model=GetAuthor, status_code=status.HTTP_201_CREATED)
async def create_author(
    first_name: str = Form(...),
    last_name: str = Form(...),
    identification: Optional[str] = Form(None),
    books: List[str] = Form(default=[]),
    photo: Optional[UploadFile] = File(None),
    service: AuthorService = Depends(get_author_service),
    claims: dict = Depends(require_admin),
):
    """
    Create an author from a multipart form.

    - **books**: Repeat the field once per title to create books along with the author
    - **photo**: Optional picture, stored through the archive storage
    """
    create = validate_form(
        CreateAuthor,
        first_name=first_name,
        last_name=last_name,
        identification=identification or None,
        books=[{"title": title} for title in books if title],
    )
    author = unwrap(await service.create_author(create, await read_photo(photo)))
    location = f"{api_config.api_prefix}{router.prefix}/{author.id}"
    return json_response(author, status.HTTP_201_CREATED, headers={"Location": location})


@router.put("/{author_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_author(
    author_id: int,
    first_name: str = Form(...),
    last_name: str = Form(...),
    identification: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    service: AuthorService = Depends(get_author_service),
    claims: dict = Depends(require_admin),
):
    """Replace the author's names and identification; a new photo replaces the old one."""
    update = validate_form(
        UpdateAuthor,
        first_name=first_name,
        last_name=last_name,
        identification=identification or None,
    )
    unwrap(await service.update_author(author_id, update, await read_photo(photo)))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{author_id}", status_code=status.HTTP_204_NO_CONTENT)
async def patch_author(
    author_id: int,
    patch: PatchAuthor,
    service: AuthorService = Depends(get_author_service),
    claims: dict = Depends(require_admin),
):
    """Update only the fields present in the body."""
    unwrap(await service.patch_author(author_id, patch))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{author_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_author(
    author_id: int,
    service: AuthorService = Depends(get_author_service),
    claims: dict = Depends(require_admin),
):
    """Delete the author, their book links and their photo."""
    unwrap(await service.delete_author(author_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
