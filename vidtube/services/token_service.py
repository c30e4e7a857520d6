"""JWT access/refresh token issuance and verification."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from uuid import UUID, uuid4

import jwt
import structlog

from vidtube.config import Settings, get_settings
from vidtube.exceptions import InvalidTokenError
from vidtube.models.auth import AccessClaims, RefreshClaims, TokenPair
from vidtube.models.user import User

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class TokenConfig:
    """Signing secrets and lifetimes, fixed for the life of the process."""

    access_secret: str
    access_expire_minutes: int
    refresh_secret: str
    refresh_expire_days: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        return cls(
            access_secret=settings.access_token_secret,
            access_expire_minutes=settings.access_token_expire_minutes,
            refresh_secret=settings.refresh_token_secret,
            refresh_expire_days=settings.refresh_token_expire_days,
        )


class TokenService:
    """Stateless issuer and verifier for the access/refresh token pair."""

    def __init__(self, config: TokenConfig):
        self.config = config

    def create_access_token(self, user: User) -> str:
        """Create a signed short-lived access token.

        Args:
            user: User the token identifies (id goes in the 'sub' claim)

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "full_name": user.full_name,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + timedelta(minutes=self.config.access_expire_minutes),
        }
        return jwt.encode(payload, self.config.access_secret, algorithm=JWT_ALGORITHM)

    def create_refresh_token(self, user_id: UUID) -> str:
        """Create a signed long-lived refresh token.

        Args:
            user_id: User the token identifies

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "jti": uuid4().hex,
            "type": REFRESH_TOKEN_TYPE,
            "iat": now,
            "exp": now + timedelta(days=self.config.refresh_expire_days),
        }
        return jwt.encode(payload, self.config.refresh_secret, algorithm=JWT_ALGORITHM)

    def issue_token_pair(self, user: User) -> TokenPair:
        """Issue an access token and a refresh token for a user.

        The caller is responsible for persisting the refresh token.
        """
        pair = TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user.id),
        )
        logger.debug(
            "token_pair_issued",
            user_id=str(user.id),
            access_expires_minutes=self.config.access_expire_minutes,
            refresh_expires_days=self.config.refresh_expire_days,
        )
        return pair

    def verify_access_token(self, token: str) -> AccessClaims:
        """Decode and validate an access token.

        Raises:
            InvalidTokenError: If the token is invalid, expired, or malformed
        """
        payload = self._decode(token, self.config.access_secret, ACCESS_TOKEN_TYPE)
        return AccessClaims(
            user_id=self._subject(payload),
            username=payload.get("username", ""),
            email=payload.get("email", ""),
            full_name=payload.get("full_name", ""),
        )

    def verify_refresh_token(self, token: str) -> RefreshClaims:
        """Decode and validate a refresh token.

        Raises:
            InvalidTokenError: If the token is invalid, expired, or malformed
        """
        payload = self._decode(token, self.config.refresh_secret, REFRESH_TOKEN_TYPE)
        return RefreshClaims(user_id=self._subject(payload))

    def _decode(self, token: str, secret: str, expected_type: str) -> dict:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError(f"{expected_type.capitalize()} token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid {expected_type} token: {e}")

        if payload.get("type") != expected_type:
            raise InvalidTokenError(f"Invalid {expected_type} token: wrong token type")
        return payload

    @staticmethod
    def _subject(payload: dict) -> UUID:
        try:
            return UUID(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise InvalidTokenError("Invalid token payload")


@lru_cache
def get_token_service() -> TokenService:
    """Token service bound to the process-wide token configuration."""
    return TokenService(TokenConfig.from_settings(get_settings()))
