"""
Bulk author operations: fetch by a comma-separated id list and all-or-nothing creation.
"""

import re
from collections import Counter
from typing import List, Optional

import structlog

from catalog.models import Author
from catalog.result import Result, ResultErrorType
from catalog.schemas import CreateAuthor, GetAuthor, GetAuthorWithBooks
from catalog.services.authors import AuthorService
from storage.repositories import AuthorRepository

logger = structlog.get_logger(__name__)

# Optional sign and ASCII digits only; rejects "1_0" and non-ASCII digits that int() accepts
INTEGER_TOKEN = re.compile(r"[+-]?[0-9]+")


def parse_author_ids(ids: str) -> List[int]:
    """Parse ``"1,2,x,2"`` into ``[1, 2]``: non-integer tokens are dropped, duplicates removed, order kept."""
    parsed: List[int] = []
    seen = set()
    for token in (ids or "").split(","):
        token = token.strip()
        if not INTEGER_TOKEN.fullmatch(token):
            continue
        value = int(token)
        if value not in seen:
            seen.add(value)
            parsed.append(value)
    return parsed


class AuthorsCollectionService:

    def __init__(self, authors: AuthorRepository, author_service: AuthorService):
        self.authors = authors
        self.author_service = author_service

    async def get_authors_by_ids(self, ids: str) -> Result[List[GetAuthorWithBooks]]:
        id_list = parse_author_ids(ids)
        if not id_list:
            return Result.failure(ResultErrorType.BAD_REQUEST, "No valid author IDs provided.")

        authors = {author.id: author for author in await self.authors.get_many(id_list)}
        missing = [author_id for author_id in id_list if author_id not in authors]
        if missing:
            return Result.failure(
                ResultErrorType.NOT_FOUND,
                f"Some authors not found: {', '.join(str(i) for i in missing)}",
            )

        books_by_author = await self.author_service.books_by_author(id_list)
        data = [
            GetAuthorWithBooks.from_entity(authors[author_id], books_by_author.get(author_id))
            for author_id in id_list
        ]
        return Result.success(data)

    async def create_authors(self, create_authors: Optional[List[CreateAuthor]]) -> Result[List[GetAuthor]]:
        if not create_authors:
            return Result.failure(ResultErrorType.BAD_REQUEST, "The list of authors cannot be empty.")

        identifications = [a.identification for a in create_authors if a.identification is not None]

        duplicates = [value for value, count in Counter(identifications).items() if count > 1]
        if duplicates:
            return Result.failure(
                ResultErrorType.BAD_REQUEST,
                f"Duplicate identifications found in input: {', '.join(duplicates)}",
            )

        if identifications:
            existing = await self.authors.existing_identifications(identifications)
            if existing:
                return Result.failure(
                    ResultErrorType.BAD_REQUEST,
                    f"Some authors already exist with these identifications: {', '.join(existing)}",
                )

        ids = await self.authors.reserve_ids(len(create_authors))
        authors = [
            Author(
                id=author_id,
                first_name=create.first_name,
                last_name=create.last_name,
                identification=create.identification,
            )
            for author_id, create in zip(ids, create_authors)
        ]
        await self.authors.insert_many(authors)
        for author, create in zip(authors, create_authors):
            await self.author_service.create_books_for(author.id, create.books)
        logger.info("Authors created", count=len(authors), ids=ids)

        return Result.success([GetAuthor.from_entity(author) for author in authors])
