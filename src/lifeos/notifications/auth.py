"""
Bearer token verification for notification connections and REST calls.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Request, WebSocket
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lifeos.infrastructure.config.settings import AuthConfig
from lifeos.utils.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _bearer_token(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    scheme, _, token = value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class TokenVerifier:
    """Verify HS256 tokens issued by the auth service."""

    def __init__(self, config: AuthConfig):
        self.config = config

    def verify(self, token: Optional[str]) -> Dict[str, Any]:
        """Decode ``token`` and return its claims.

        Raises:
            AuthenticationError: missing, malformed, badly signed or expired
                token, or a token without a subject
        """
        if not token:
            raise AuthenticationError("Missing credential")

        try:
            payload = jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=[self.config.jwt_algorithm],
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {e}") from e

        if not payload.get("sub"):
            raise AuthenticationError("Token missing subject")

        return payload

    def subject(self, token: Optional[str]) -> str:
        return str(self.verify(token)["sub"])

    def create_access_token(
        self,
        subject: str,
        expires_delta: Optional[timedelta] = None,
        extra_claims: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Issue a token for ``subject`` (development and tests only)."""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.config.token_expire_minutes))
        payload = {
            **(extra_claims or {}),
            "sub": subject,
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)


class HandshakeAuthenticator:
    """
    Authenticate a WebSocket before it is accepted.

    The credential is read from the ``Authorization: Bearer`` header of the
    upgrade request first, then from the token query parameter; the first
    non-empty one is verified. There is no re-authentication afterwards, so
    a token expiring mid-session does not disconnect the client.
    """

    def __init__(self, verifier: TokenVerifier):
        self.verifier = verifier

    def extract_token(self, websocket: WebSocket) -> Optional[str]:
        token = _bearer_token(websocket.headers.get("authorization"))
        if token:
            return token
        return websocket.query_params.get(self.verifier.config.token_query_param) or None

    def authenticate(self, websocket: WebSocket) -> str:
        """Return the user id for the connection or raise AuthenticationError."""
        user_id = self.verifier.subject(self.extract_token(websocket))
        logger.debug(f"WebSocket authenticated for user: {user_id}")
        return user_id


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


async def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> str:
    """FastAPI dependency guarding the REST routes; returns the subject."""
    token = credentials.credentials if credentials else None
    return verifier.subject(token)
