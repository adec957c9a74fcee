# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT verification for identity provider tokens.

Access tokens are issued by the external identity provider and carry the
subject id in ``sub`` and the subject's role in ``role``. This module
verifies them with python-jose and turns them into an Identity.
create_access_token() mints tokens with the same shape for local tooling
and tests.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token("user_123", role="student")
    >>> jwt_manager.decode_token(token).sub
    'user_123'
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, jwt
from pydantic import BaseModel

from src.core.config.settings import JWTSettings
from src.domains.auth.identity import Identity, Role

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        sub: Subject (user ID).
        role: Role claim, if the provider assigned one.
        exp: Expiration timestamp, absent for non-expiring provider tokens.
        iat: Issued at timestamp.
        jti: JWT ID for token tracking.
    """

    sub: str
    role: str | None = None
    exp: int | None = None
    iat: int | None = None
    jti: str | None = None

    def to_identity(self) -> Identity:
        """Convert the payload into a caller identity."""
        return Identity(subject_id=self.sub, role=Role.from_claim(self.role))


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT token verification manager.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
        """
        self._settings = settings

    def create_access_token(
        self,
        subject_id: str,
        role: str | None = None,
        expires_in_minutes: int = 30,
    ) -> str:
        """Create an access token in the identity provider's format.

        Args:
            subject_id: Subject identifier.
            role: Role claim.
            expires_in_minutes: Lifetime of the token.

        Returns:
            JWT access token string.
        """
        now = datetime.now(timezone.utc)
        exp = now + timedelta(minutes=expires_in_minutes)

        payload = {
            "sub": subject_id,
            "role": role,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate a JWT token.

        Args:
            token: JWT token string.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )

            return TokenPayload(
                sub=payload["sub"],
                role=payload.get("role"),
                exp=payload.get("exp"),
                iat=payload.get("iat"),
                jti=payload.get("jti"),
            )

        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except Exception as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

    def resolve_identity(self, token: str) -> Identity:
        """Verify a token and return the caller identity.

        Args:
            token: JWT token string.

        Returns:
            Identity carried by the token.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        return self.decode_token(token).to_identity()
