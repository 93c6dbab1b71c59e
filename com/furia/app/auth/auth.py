import logging
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from com.furia.app.config.config import Config
from com.furia.app.database.verification_store import VerificationStore, get_verification_store
from com.furia.app.exceptions.exceptions import AuthError, VerificationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

SESSION_COOKIE = "jwt"


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: VerificationStore = Depends(get_verification_store)
) -> str:
    """Resolve the caller's user id from the session cookie or a Bearer token"""
    token = request.cookies.get(SESSION_COOKIE)
    if not token and credentials:
        token = credentials.credentials
    if not token:
        raise AuthError()

    config = Config()
    if not config.jwt_secret:
        logger.error("JWT secret not configured")
        raise VerificationError("Authentication is not available", detail="JWT_SECRET not configured")

    try:
        payload = jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.PyJWTError as e:
        logger.warning(f"Rejected session token: {str(e)}")
        raise AuthError("Invalid token", detail=str(e))

    user_id = payload.get("uid")
    if not user_id or not isinstance(user_id, str):
        raise AuthError("Invalid token")

    if not await store.user_exists(user_id):
        raise AuthError("User no longer exists")

    return user_id


def ensure_same_user(session_user_id: str, claimed_user_id: Optional[str]) -> None:
    """Reject requests that name a user other than the authenticated one"""
    if claimed_user_id and claimed_user_id != session_user_id:
        logger.warning(f"User {session_user_id} attempted to act on verification of {claimed_user_id}")
        raise AuthError("Not allowed to access another user's verification", status_code=403)
