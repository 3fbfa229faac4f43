"""
Authorization predicates invoked by the services and the API boundary.
"""

from typing import Mapping, Optional, Union

from catalog.models import ADMIN_CLAIM_TYPE, Comment, User


def is_admin(subject: Union[User, Mapping[str, object], None]) -> bool:
    """True when the user (or the decoded token claims) carries ``isAdmin = "true"``."""
    if subject is None:
        return False
    if isinstance(subject, User):
        return any(
            claim.type == ADMIN_CLAIM_TYPE and claim.value == "true"
            for claim in subject.claims
        )
    return str(subject.get(ADMIN_CLAIM_TYPE, "")).lower() == "true"


def owns(user: Optional[User], comment: Comment) -> bool:
    return user is not None and user.id == comment.user_id
