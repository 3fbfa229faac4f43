"""
User service: current-user resolution, registration, login, token refresh and admin grants.
"""

from typing import Mapping, Optional

import structlog

from catalog.models import ADMIN_CLAIM_TYPE, EMAIL_CLAIM_TYPE, User, UserClaim
from catalog.permissions import is_admin
from catalog.result import Result, ResultErrorType
from catalog.schemas import (
    AuthenticationResponse, EditClaim, GetUser, UpdateUserProfile, UserCredentials
)
from catalog.services.security import HashService, PasswordValidator, TokenService
from storage.repositories import UserRepository

logger = structlog.get_logger(__name__)

Claims = Mapping[str, object]


class UserService:
    """Account operations on top of the user repository and the token issuer."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        hasher: HashService,
        password_validator: Optional[PasswordValidator] = None,
    ):
        self.users = users
        self.tokens = tokens
        self.hasher = hasher
        self.password_validator = password_validator or PasswordValidator()

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        return await self.users.get_by_id(user_id)

    async def get_user(self, claims: Optional[Claims]) -> Optional[User]:
        """Resolve the authenticated user through the email claim of the token."""
        if not claims:
            return None
        email = claims.get(EMAIL_CLAIM_TYPE)
        if not email:
            return None
        return await self.users.get_by_email(str(email))

    async def get_validated_user(
        self,
        claims: Optional[Claims] = None,
        user_id: Optional[str] = None,
    ) -> Result[User]:
        user = await self.get_user_by_id(user_id) if user_id else await self.get_user(claims)
        if user is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "User not found")
        return Result.success(user)

    async def get_profile(self, claims: Optional[Claims]) -> Result[GetUser]:
        user_result = await self.get_validated_user(claims)
        if not user_result.is_success:
            return Result.propagate(user_result)
        return Result.success(GetUser.from_entity(user_result.data))

    async def update_profile(self, claims: Optional[Claims], profile: UpdateUserProfile) -> Result[None]:
        user_result = await self.get_validated_user(claims)
        if not user_result.is_success:
            return Result.propagate(user_result)
        await self.users.update_birth_date(user_result.data.id, profile.birth_date)
        return Result.success()

    async def _issue_token(self, user: User) -> AuthenticationResponse:
        return self.tokens.create_token(user.email, user.claims)

    async def register(self, credentials: UserCredentials) -> Result[AuthenticationResponse]:
        email = str(credentials.email)
        if await self.users.get_by_email(email) is not None:
            logger.info("Registration rejected, email in use", email=email)
            return Result.failure(ResultErrorType.BAD_REQUEST, "Incorrect Registration")

        password_errors = self.password_validator.validate(credentials.password)
        if password_errors:
            return Result.failure(ResultErrorType.BAD_REQUEST, "\n".join(password_errors))

        hashed = self.hasher.hash(credentials.password)
        user = User(
            email=email,
            normalized_email=email.lower(),
            password_hash=hashed.hash,
            password_salt=hashed.salt_b64,
        )
        await self.users.insert(user)
        logger.info("User registered", user_id=user.id)

        return Result.success(await self._issue_token(user))

    async def login(self, credentials: UserCredentials) -> Result[AuthenticationResponse]:
        user = await self.users.get_by_email(str(credentials.email))
        if user is None:
            return Result.failure(ResultErrorType.BAD_REQUEST, "Incorrect Login")

        if not self.hasher.verify(credentials.password, user.password_hash, user.password_salt):
            logger.info("Login rejected", user_id=user.id)
            return Result.failure(ResultErrorType.BAD_REQUEST, "Incorrect Login")

        return Result.success(await self._issue_token(user))

    async def refresh_token(self, claims: Optional[Claims]) -> Result[AuthenticationResponse]:
        user = await self.get_user(claims)
        if user is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "User not found")
        return Result.success(await self._issue_token(user))

    async def make_admin(self, edit_claim: EditClaim) -> Result[None]:
        """
        Grant the admin claim. Granting it to a user who already holds it is
        rejected so the claim list never carries duplicates.
        """
        user = await self.users.get_by_email(str(edit_claim.email))
        if user is None:
            return Result.failure(ResultErrorType.NOT_FOUND, "User not found")

        if is_admin(user):
            return Result.failure(ResultErrorType.BAD_REQUEST, "User is already an admin")

        await self.users.add_claim(user.id, UserClaim(type=ADMIN_CLAIM_TYPE, value="true"))
        logger.info("Admin claim granted", user_id=user.id)
        return Result.success()
