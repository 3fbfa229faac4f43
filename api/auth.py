"""
Bearer-token authentication and rate limiting for the FastAPI API.
"""

import math
import time
from typing import Dict, Optional, Tuple

import jwt
import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.config import config as api_config
from catalog.permissions import is_admin

logger = structlog.get_logger(__name__)

# Security schemes
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

TOO_MANY_REQUESTS = "Too many requests. Please try again later."


def _token_service(request: Request):
    return request.app.state.services.tokens


def _decode(request: Request, token: str) -> Dict[str, object]:
    try:
        return _token_service(request).decode_token(token)
    except jwt.ExpiredSignatureError:
        logger.info("Expired token presented", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token presented", path=request.url.path, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_claims(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Dict[str, object]:
    """
    Decode and validate the bearer token of the request.

    Returns:
        The token claims

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    return _decode(request, credentials.credentials)


async def get_optional_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
) -> Optional[Dict[str, object]]:
    """Claims of the bearer token when one is sent, otherwise None."""
    if credentials is None:
        return None
    return _decode(request, credentials.credentials)


async def require_admin(claims: Dict[str, object] = Depends(get_current_claims)) -> Dict[str, object]:
    """Allow the request only when the token carries the admin claim."""
    if not is_admin(claims):
        logger.warning("Admin endpoint denied", email=claims.get("email"))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required",
        )
    return claims


class RateLimiter:
    """
    Fixed-window request counter per client address.

    Counters live in process memory; each worker process limits on its own.
    """

    def __init__(self, name: str, limit: int, window_seconds: int):
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_sweep: Optional[float] = None

    def hit(self, client: str, now: Optional[float] = None) -> Optional[int]:
        """
        Count a request from ``client``.

        Returns:
            None if the request is allowed, otherwise the seconds until the window resets
        """
        now = time.monotonic() if now is None else now
        self._evict_expired(now)
        started, count = self._windows.get(client, (now, 0))

        if now - started >= self.window_seconds:
            started, count = now, 0

        if count >= self.limit:
            return max(1, math.ceil(self.window_seconds - (now - started)))

        self._windows[client] = (started, count + 1)
        return None

    def reset(self) -> None:
        self._windows.clear()
        self._last_sweep = None

    def _evict_expired(self, now: float) -> None:
        """Drop clients whose window has closed, at most once per window length."""
        if self._last_sweep is not None and now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for client, (started, _) in list(self._windows.items()):
            if now - started >= self.window_seconds:
                del self._windows[client]

    async def __call__(self, request: Request) -> None:
        if not api_config.rate_limit_enabled:
            return

        client = request.client.host if request.client else "unknown"
        retry_after = self.hit(client)
        if retry_after is not None:
            logger.warning("Rate limit exceeded", policy=self.name, client=client, path=request.url.path)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=TOO_MANY_REQUESTS,
                headers={"Retry-After": str(retry_after)},
            )


general_rate_limit = RateLimiter(
    "general", api_config.general_rate_limit, api_config.general_rate_window
)
strict_rate_limit = RateLimiter(
    "strict", api_config.strict_rate_limit, api_config.strict_rate_window
)
