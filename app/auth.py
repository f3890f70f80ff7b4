"""
Session identity resolution.

Bearer tokens are issued by the external authentication provider; this
service only verifies them and reads the subject id and verified email.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import settings
from app.logging_config import logger

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str


class IdentityProvider(ABC):
    """Resolves a session token to the user it belongs to"""

    @abstractmethod
    async def authenticate(self, token: str) -> Optional[AuthenticatedUser]:
        """Return the user for a valid token, None otherwise"""


class JWTIdentityProvider(IdentityProvider):
    """Verifies HS256-style session JWTs carrying `sub` and `email` claims"""

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        self.secret = secret or settings.auth_jwt_secret
        self.algorithm = algorithm or settings.auth_jwt_algorithm
        self.audience = audience if audience is not None else settings.auth_jwt_audience

    async def authenticate(self, token: str) -> Optional[AuthenticatedUser]:
        if not self.secret:
            logger.error("AUTH_JWT_SECRET is not configured, rejecting session token")
            return None

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": bool(self.audience)},
            )
        except JWTError as e:
            logger.info(f"Rejected session token: {str(e)}")
            return None

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            logger.info("Session token missing sub or email claim")
            return None

        return AuthenticatedUser(id=str(user_id), email=str(email).lower())


_identity_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    """Dependency returning the process-wide identity provider"""
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = JWTIdentityProvider()
    return _identity_provider


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Optional[AuthenticatedUser]:
    """Current user, or None when the request carries no valid session"""
    if credentials is None or not credentials.credentials:
        return None
    return await provider.authenticate(credentials.credentials)


async def get_current_user(
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> AuthenticatedUser:
    """Current user; responds 401 when there is no valid session"""
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
