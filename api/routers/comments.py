"""
Comment endpoints, nested under the commented book.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from api.auth import general_rate_limit, get_current_claims
from api.config import config as api_config
from api.dependencies import get_comment_service
from api.responses import json_response, unwrap
from catalog.schemas import CreateComment, GetComment, PatchComment, UpdateComment
from catalog.services import CommentService

router = APIRouter(
    prefix="/books/{book_id}/comments",
    tags=["Comments"],
    dependencies=[Depends(general_rate_limit)],
)


@router.get("", response_model=List[GetComment])
async def get_comments(book_id: int, service: CommentService = Depends(get_comment_service)):
    """Visible comments of the book, newest first."""
    return unwrap(await service.get_comments(book_id))


@router.get("/{comment_id}", response_model=GetComment)
async def get_comment(book_id: int, comment_id: str, service: CommentService = Depends(get_comment_service)):
    return unwrap(await service.get_comment_by_id(book_id, comment_id))


@router.post("", response_model=GetComment, status_code=status.HTTP_201_CREATED)
async def create_comment(
    book_id: int,
    create_comment: CreateComment,
    service: CommentService = Depends(get_comment_service),
    claims: dict = Depends(get_current_claims),
):
    """Comment on a book as the authenticated user."""
    comment = unwrap(await service.create_comment(claims, book_id, create_comment))
    return json_response(
        comment,
        status.HTTP_201_CREATED,
        headers={"Location": f"{api_config.api_prefix}/books/{book_id}/comments/{comment.id}"},
    )


@router.put("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_comment(
    book_id: int,
    comment_id: str,
    update_comment: UpdateComment,
    service: CommentService = Depends(get_comment_service),
    claims: dict = Depends(get_current_claims),
):
    """Replace the content of one of your own comments."""
    unwrap(await service.update_comment(claims, book_id, comment_id, update_comment))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def patch_comment(
    book_id: int,
    comment_id: str,
    patch: PatchComment,
    service: CommentService = Depends(get_comment_service),
    claims: dict = Depends(get_current_claims),
):
    unwrap(await service.patch_comment(claims, book_id, comment_id, patch))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    book_id: int,
    comment_id: str,
    service: CommentService = Depends(get_comment_service),
    claims: dict = Depends(get_current_claims),
):
    """Soft-delete one of your own comments."""
    unwrap(await service.delete_comment(claims, book_id, comment_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
