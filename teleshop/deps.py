"""Shared FastAPI dependencies."""

from dataclasses import dataclass

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from teleshop.core.exceptions import ForbiddenError, UnauthorizedError
from teleshop.core.security import load_admin_token, load_user_token
from teleshop.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AdminSession:
    username: str


def bearer_token(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> str | None:
    return credentials.credentials if credentials else None


async def get_current_user(token: str | None = Depends(bearer_token)) -> User:
    """Dependency: resolve the bearer user token to a User."""
    if not token:
        raise UnauthorizedError("No token provided")
    payload = load_user_token(token)
    if not payload:
        raise UnauthorizedError("Invalid or expired token")
    try:
        user_id = PydanticObjectId(payload.get("user_id"))
    except (InvalidId, TypeError):
        raise UnauthorizedError("Invalid session")
    user = await User.get(user_id)
    if not user:
        raise UnauthorizedError("User not found")
    if payload.get("session_version") != user.session_version:
        raise UnauthorizedError("Session invalidated")
    return user


async def require_admin(token: str | None = Depends(bearer_token)) -> AdminSession:
    """
    Dependency: require an admin token.
    401 for missing, forged or expired tokens; 403 for a valid user token.
    """
    if not token:
        raise UnauthorizedError("No token provided")
    payload = load_admin_token(token)
    if payload and payload.get("is_admin") is True:
        return AdminSession(username=payload.get("username") or "admin")
    if payload or load_user_token(token):
        raise ForbiddenError("Admin access required")
    raise UnauthorizedError("Invalid token")
