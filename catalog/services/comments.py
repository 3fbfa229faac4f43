"""
Comment service. Comments belong to a book and to the user who wrote them;
only their owner may edit or delete them, and deletion is soft.
"""

from typing import List, Mapping, Optional

import structlog
from pydantic import ValidationError

from catalog.models import Comment, User, utc_now
from catalog.permissions import owns
from catalog.result import Result, ResultErrorType
from catalog.schemas import CreateComment, GetComment, PatchComment, UpdateComment
from catalog.services.authors import format_validation_errors
from catalog.services.users import UserService
from storage.repositories import BookRepository, CommentRepository, UserRepository

logger = structlog.get_logger(__name__)

Claims = Mapping[str, object]


class CommentService:

    def __init__(
        self,
        comments: CommentRepository,
        books: BookRepository,
        users: UserRepository,
        user_service: UserService,
    ):
        self.comments = comments
        self.books = books
        self.users = users
        self.user_service = user_service

    async def _with_emails(self, comments: List[Comment]) -> List[GetComment]:
        emails = {}
        if comments:
            users = await self.users.get_many({comment.user_id for comment in comments})
            emails = {user.id: user.email for user in users}
        return [GetComment.from_entity(comment, emails.get(comment.user_id)) for comment in comments]

    async def get_comments(self, book_id: int) -> Result[List[GetComment]]:
        """All visible comments of the book, newest first."""
        if not await self.books.exists(book_id):
            return Result.failure(ResultErrorType.NOT_FOUND, "Book not found")

        comments = await self.comments.for_book(book_id)
        return Result.success(await self._with_emails(comments))

    async def get_comment_by_id(self, book_id: int, comment_id: str) -> Result[GetComment]:
        comment = await self.comments.get(comment_id, book_id=book_id)
        if comment is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "Comment not found")

        data = await self._with_emails([comment])
        return Result.success(data[0])

    async def create_comment(
        self,
        claims: Optional[Claims],
        book_id: int,
        create_comment: CreateComment,
    ) -> Result[GetComment]:
        user_result = await self.user_service.get_validated_user(claims)
        if not user_result.is_success:
            return Result.propagate(user_result)
        user = user_result.data

        if not await self.books.exists(book_id):
            return Result.failure(ResultErrorType.NOT_FOUND, "Book not found")

        comment = Comment(
            content=create_comment.content,
            published_at=utc_now(),
            book_id=book_id,
            user_id=user.id,
        )
        await self.comments.insert(comment)
        logger.info("Comment created", comment_id=comment.id, book_id=book_id, user_id=user.id)

        return Result.success(GetComment.from_entity(comment, user.email))

    async def _owned_comment(
        self,
        claims: Optional[Claims],
        book_id: int,
        comment_id: str,
        forbidden_message: str,
    ) -> Result[Comment]:
        user_result = await self.user_service.get_validated_user(claims)
        if not user_result.is_success:
            return Result.propagate(user_result)
        user: User = user_result.data

        comment = await self.comments.get(comment_id, book_id=book_id)
        if comment is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "Comment not found")

        if not owns(user, comment):
            logger.warning("Comment ownership check failed", comment_id=comment_id, user_id=user.id)
            return Result.failure(ResultErrorType.FORBIDDEN, forbidden_message)

        return Result.success(comment)

    async def update_comment(
        self,
        claims: Optional[Claims],
        book_id: int,
        comment_id: str,
        update_comment: UpdateComment,
    ) -> Result[None]:
        owned = await self._owned_comment(claims, book_id, comment_id, "You cannot edit another user's comment")
        if not owned.is_success:
            return Result.propagate(owned)

        await self.comments.update_content(comment_id, update_comment.content)
        logger.info("Comment updated", comment_id=comment_id, book_id=book_id)
        return Result.success()

    async def patch_comment(
        self,
        claims: Optional[Claims],
        book_id: int,
        comment_id: str,
        patch: PatchComment,
    ) -> Result[None]:
        owned = await self._owned_comment(claims, book_id, comment_id, "You cannot edit another user's comment")
        if not owned.is_success:
            return Result.propagate(owned)

        if "content" not in patch.model_fields_set:
            return Result.success()

        try:
            patched = UpdateComment.model_validate({"content": patch.content})
        except ValidationError as e:
            return Result.failure(ResultErrorType.BAD_REQUEST, format_validation_errors(e))

        await self.comments.update_content(comment_id, patched.content)
        logger.info("Comment patched", comment_id=comment_id, book_id=book_id)
        return Result.success()

    async def delete_comment(self, claims: Optional[Claims], book_id: int, comment_id: str) -> Result[None]:
        owned = await self._owned_comment(claims, book_id, comment_id, "You cannot delete another user's comment")
        if not owned.is_success:
            return Result.propagate(owned)

        await self.comments.soft_delete(comment_id)
        logger.info("Comment deleted", comment_id=comment_id, book_id=book_id)
        return Result.success()
