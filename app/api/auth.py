"""Bearer token verification at the HTTP boundary.

Token issuance lives outside this service; this module only turns a verified
token into the requesting user's id.
"""

from abc import ABC, abstractmethod
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

_bearer = HTTPBearer(auto_error=False)


class AuthenticationError(Exception):
    """Raised when a bearer token cannot be verified."""


class BaseTokenVerifier(ABC):
    @abstractmethod
    def verify(self, token: str) -> str:
        """Return the user id carried by a valid token.

        Raises:
            AuthenticationError: if the token is invalid or expired.
        """


class JwtTokenVerifier(BaseTokenVerifier):
    """Verifies HMAC-signed JWTs; the user id comes from ``sub`` or ``userId``."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def verify(self, token: str) -> str:
        if not self._secret:
            raise AuthenticationError("Token verification is not configured")
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError as exc:
            raise AuthenticationError(f"Invalid token: {exc}") from exc
        user_id = claims.get("sub") or claims.get("userId")
        if user_id is None or not str(user_id).strip():
            raise AuthenticationError("Token carries no user id")
        return str(user_id)


def get_requester_id(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> str:
    """Resolve the authenticated user id or answer 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    verifier: BaseTokenVerifier | None = getattr(request.app.state, "token_verifier", None)
    if verifier is None:
        raise HTTPException(status_code=503, detail="Authentication is not configured")
    try:
        return verifier.verify(credentials.credentials)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
