"""
Account endpoints: registration, login, token refresh, profile and admin grants.
"""

from fastapi import APIRouter, Depends, Response, status

from api.auth import general_rate_limit, get_current_claims, require_admin, strict_rate_limit
from api.dependencies import get_user_service
from api.responses import unwrap
from catalog.schemas import AuthenticationResponse, EditClaim, GetUser, UpdateUserProfile, UserCredentials
from catalog.services import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/register", response_model=AuthenticationResponse, dependencies=[Depends(general_rate_limit)])
async def register(credentials: UserCredentials, service: UserService = Depends(get_user_service)):
    """Create an account and return a bearer token for it."""
    return unwrap(await service.register(credentials))


@router.post("/login", response_model=AuthenticationResponse, dependencies=[Depends(strict_rate_limit)])
async def login(credentials: UserCredentials, service: UserService = Depends(get_user_service)):
    return unwrap(await service.login(credentials))


@router.get("/refresh-token", response_model=AuthenticationResponse, dependencies=[Depends(general_rate_limit)])
async def refresh_token(
    service: UserService = Depends(get_user_service),
    claims: dict = Depends(get_current_claims),
):
    """Issue a fresh token for the authenticated user, picking up newly granted claims."""
    return unwrap(await service.refresh_token(claims))


@router.post(
    "/make-admin",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(strict_rate_limit)],
)
async def make_admin(
    edit_claim: EditClaim,
    service: UserService = Depends(get_user_service),
    claims: dict = Depends(require_admin),
):
    """Grant the admin claim to the user with the given email."""
    unwrap(await service.make_admin(edit_claim))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=GetUser, dependencies=[Depends(general_rate_limit)])
async def get_profile(
    service: UserService = Depends(get_user_service),
    claims: dict = Depends(get_current_claims),
):
    return unwrap(await service.get_profile(claims))


@router.put("/me", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(general_rate_limit)])
async def update_profile(
    profile: UpdateUserProfile,
    service: UserService = Depends(get_user_service),
    claims: dict = Depends(get_current_claims),
):
    unwrap(await service.update_profile(claims, profile))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
