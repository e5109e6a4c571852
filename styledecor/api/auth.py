"""Bearer-token authentication and role capability checks."""

from dataclasses import dataclass
import logging
import os
from typing import Any, Dict

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from jwt import PyJWTError
from sqlalchemy.orm import Session

from styledecor.api.dependencies import get_db
from styledecor.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The verified caller of a request."""

    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_decorator(self) -> bool:
        return self.role == "decorator"


def _jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET_KEY")
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT secret not configured. Set JWT_SECRET_KEY.",
        )
    return secret


def decode_access_token(token: str) -> Dict[str, Any]:
    algorithm = os.getenv("JWT_ALGORITHM", "HS256")
    return jwt.decode(token, _jwt_secret(), algorithms=[algorithm])


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = decode_access_token(credentials.credentials)
    except PyJWTError as exc:
        logger.warning("Rejected access token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    email = claims.get("email") or claims.get("sub")
    if not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token carries no email",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = UserRepository(db).get_by_email(email)
    return Principal(email=email, role=user.role if user else "user")


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return principal


def require_decorator(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_decorator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Decorator access required",
        )
    return principal
