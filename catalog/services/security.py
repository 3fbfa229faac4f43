"""
Credential hashing, password policy and bearer token issuance.
"""

import base64
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

import jwt
import structlog
from pydantic import BaseModel

from catalog.models import EMAIL_CLAIM_TYPE, UserClaim
from catalog.schemas import AuthenticationResponse

logger = structlog.get_logger(__name__)

RESERVED_TOKEN_CLAIMS = {"iss", "aud", "exp", "nbf", "iat", "sub", "jti", EMAIL_CLAIM_TYPE}


class HashResult(BaseModel):
    hash: str
    salt: bytes

    @property
    def salt_b64(self) -> str:
        return base64.b64encode(self.salt).decode("ascii")


class HashService:
    """PBKDF2-HMAC-SHA1, 10 000 iterations, 256-bit output, 128-bit random salt."""

    ITERATIONS = 10_000
    KEY_LENGTH = 32
    SALT_LENGTH = 16

    def hash(self, value: str, salt: Optional[bytes] = None) -> HashResult:
        if salt is None:
            salt = secrets.token_bytes(self.SALT_LENGTH)
        digest = hashlib.pbkdf2_hmac(
            "sha1", value.encode("utf-8"), salt, self.ITERATIONS, dklen=self.KEY_LENGTH
        )
        return HashResult(hash=base64.b64encode(digest).decode("ascii"), salt=salt)

    def verify(self, value: str, expected_hash: str, salt_b64: str) -> bool:
        candidate = self.hash(value, base64.b64decode(salt_b64))
        return hmac.compare_digest(candidate.hash, expected_hash)


class PasswordValidator:
    """Default password policy of the identity store the API was built on."""

    def __init__(
        self,
        required_length: int = 6,
        require_digit: bool = True,
        require_lowercase: bool = True,
        require_uppercase: bool = True,
        require_non_alphanumeric: bool = True,
    ):
        self.required_length = required_length
        self.require_digit = require_digit
        self.require_lowercase = require_lowercase
        self.require_uppercase = require_uppercase
        self.require_non_alphanumeric = require_non_alphanumeric

    def validate(self, password: str) -> List[str]:
        """Return every violated rule; an empty list means the password is acceptable."""
        errors = []
        if len(password) < self.required_length:
            errors.append(f"Passwords must be at least {self.required_length} characters.")
        if self.require_non_alphanumeric and all(ch.isalnum() for ch in password):
            errors.append("Passwords must have at least one non alphanumeric character.")
        if self.require_digit and not any("0" <= ch <= "9" for ch in password):
            errors.append("Passwords must have at least one digit ('0'-'9').")
        if self.require_lowercase and not any("a" <= ch <= "z" for ch in password):
            errors.append("Passwords must have at least one lowercase ('a'-'z').")
        if self.require_uppercase and not any("A" <= ch <= "Z" for ch in password):
            errors.append("Passwords must have at least one uppercase ('A'-'Z').")
        return errors


class TokenService:
    """Issues and validates HS256 bearer tokens carrying the user's email and claims."""

    def __init__(
        self,
        signing_key: str,
        issuer: str,
        audience: str,
        expiration_minutes: int,
        algorithm: str = "HS256",
    ):
        self.signing_key = signing_key
        self.issuer = issuer
        self.audience = audience
        self.expiration_minutes = expiration_minutes
        self.algorithm = algorithm

    @classmethod
    def from_config(cls, config) -> "TokenService":
        return cls(
            signing_key=config.jwt_signing_key,
            issuer=config.jwt_issuer,
            audience=config.jwt_audience,
            expiration_minutes=config.jwt_expiration_minutes,
            algorithm=config.jwt_algorithm,
        )

    def create_token(self, email: str, claims: Iterable[UserClaim] = ()) -> AuthenticationResponse:
        # exp is stored in whole seconds
        expiration = (
            datetime.now(timezone.utc) + timedelta(minutes=self.expiration_minutes)
        ).replace(microsecond=0)

        payload: Dict[str, object] = {EMAIL_CLAIM_TYPE: email}
        for claim in claims:
            if claim.type in RESERVED_TOKEN_CLAIMS:
                continue
            payload[claim.type] = claim.value
        payload.update({"iss": self.issuer, "aud": self.audience, "exp": expiration})

        token = jwt.encode(payload, self.signing_key, algorithm=self.algorithm)
        logger.debug("Issued token", email=email, expiration=expiration.isoformat())
        return AuthenticationResponse(token=token, expiration=expiration)

    def decode_token(self, token: str) -> Dict[str, object]:
        """
        Validate signature, issuer, audience and expiry.

        Raises:
            jwt.InvalidTokenError: If the token fails any check
        """
        return jwt.decode(
            token,
            self.signing_key,
            algorithms=[self.algorithm],
            audience=self.audience,
            issuer=self.issuer,
            options={"require": ["exp", "iss", "aud"]},
        )
