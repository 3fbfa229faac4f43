"""
Composable query specification for repository reads.

A QuerySpec only collects predicates, ordering and paging; nothing reaches the
database until a repository counts or fetches with it.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from catalog.pagination import Pagination

ASCENDING = 1
DESCENDING = -1


class QuerySpec:
    """Predicate list + ordering + skip/limit, combined with logical AND."""

    def __init__(self):
        self.predicates: List[Dict[str, Any]] = []
        self.order_by: Optional[str] = None
        self.ascending: bool = True
        self.skip: int = 0
        self.limit: Optional[int] = None
        self.joins: List[Tuple[str, str, bool]] = []

    def where(self, predicate: Dict[str, Any]) -> "QuerySpec":
        self.predicates.append(predicate)
        return self

    def contains(self, field: str, value: Optional[str]) -> "QuerySpec":
        """Case-insensitive substring match; empty values add no constraint."""
        if value:
            self.where({field: {"$regex": re.escape(value), "$options": "i"}})
        return self

    def has_value(self, field: str, flag: Optional[bool]) -> "QuerySpec":
        """Tri-state null check: True → not null, False → null, None → no constraint."""
        if flag is True:
            self.where({field: {"$ne": None}})
        elif flag is False:
            self.where({field: None})
        return self

    def has_related(self, collection: str, foreign_field: str, flag: Optional[bool]) -> "QuerySpec":
        """
        Tri-state join check against ``collection``: True → at least one document there
        refers to this ``_id`` through ``foreign_field``, False → none does.
        """
        if flag is not None:
            self.joins.append((collection, foreign_field, flag))
        return self

    def order(self, field: str, ascending: bool = True) -> "QuerySpec":
        self.order_by = field
        self.ascending = ascending
        return self

    def page(self, pagination: Pagination) -> "QuerySpec":
        self.skip = pagination.skip
        self.limit = pagination.take
        return self

    def to_filter(self) -> Dict[str, Any]:
        if not self.predicates:
            return {}
        if len(self.predicates) == 1:
            return dict(self.predicates[0])
        return {"$and": list(self.predicates)}

    def to_sort(self) -> List[Tuple[str, int]]:
        """Requested ordering followed by ``_id`` so equal keys page deterministically."""
        direction = ASCENDING if self.ascending else DESCENDING
        if self.order_by is None:
            return [("_id", ASCENDING)]
        if self.order_by == "_id":
            return [("_id", direction)]
        return [(self.order_by, direction), ("_id", ASCENDING)]

    def to_match_pipeline(self) -> List[Dict[str, Any]]:
        """Aggregation stages selecting the matching documents, joins included."""
        pipeline: List[Dict[str, Any]] = [{"$match": self.to_filter()}]
        for collection, foreign_field, flag in self.joins:
            alias = f"_{collection}"
            pipeline.append({
                "$lookup": {
                    "from": collection,
                    "localField": "_id",
                    "foreignField": foreign_field,
                    "as": alias,
                }
            })
            empty = {"$size": 0}
            pipeline.append({"$match": {alias: {"$not": empty} if flag else empty}})
            pipeline.append({"$project": {alias: 0}})
        return pipeline

    def to_page_pipeline(self) -> List[Dict[str, Any]]:
        """Matching stages followed by sort, skip and limit."""
        pipeline = self.to_match_pipeline()
        pipeline.append({"$sort": dict(self.to_sort())})
        if self.skip:
            pipeline.append({"$skip": self.skip})
        if self.limit is not None:
            pipeline.append({"$limit": self.limit})
        return pipeline

    def __repr__(self) -> str:
        return (
            f"QuerySpec(filter={self.to_filter()!r}, joins={self.joins!r}, sort={self.to_sort()!r}, "
            f"skip={self.skip}, limit={self.limit})"
        )
