"""
Bulk author endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from api.auth import general_rate_limit, require_admin
from api.config import config as api_config
from api.dependencies import get_authors_collection_service
from api.responses import json_response, unwrap
from catalog.schemas import CreateAuthor, GetAuthor, GetAuthorWithBooks
from catalog.services import AuthorsCollectionService

router = APIRouter(
    prefix="/authors-collection",
    tags=["Authors Collection"],
    dependencies=[Depends(general_rate_limit)],
)


@router.get("/{ids}", response_model=List[GetAuthorWithBooks])
async def get_authors_by_ids(ids: str, service: AuthorsCollectionService = Depends(get_authors_collection_service)):
    """
    Get several authors at once.

    - **ids**: Comma-separated author ids, e.g. ``1,2,3``; every id must exist
    """
    return unwrap(await service.get_authors_by_ids(ids))


@router.post("", response_model=List[GetAuthor], status_code=status.HTTP_201_CREATED)
async def create_authors(
    create_authors: List[CreateAuthor],
    service: AuthorsCollectionService = Depends(get_authors_collection_service),
    claims: dict = Depends(require_admin),
):
    """Create all of the given authors, or none of them when any is rejected."""
    authors = unwrap(await service.create_authors(create_authors))
    ids = ",".join(str(author.id) for author in authors)
    location = f"{api_config.api_prefix}{router.prefix}/{ids}"
    return json_response(authors, status.HTTP_201_CREATED, headers={"Location": location})
