"""
Admin authentication and bearer tokens.

Only one account can log in: the WordPress admin whose username and
Application Password are configured for the service. A successful login is
confirmed with a single call to the WordPress ``/me`` endpoint.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from blog_admin.config import Settings
from blog_admin.db import DbClient, UserRecord
from blog_admin.dependencies import get_db_client
from blog_admin.errors import UNAUTHENTICATED, ApiError
from blog_admin.wordpress import WordPressClient, WordPressError

logger = logging.getLogger(__name__)

TOKEN_NAME = "auth-token"
DEFAULT_USER_NAME = "WordPress Admin"

security = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    user: UserRecord
    token_hash: str


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _matches(submitted: str, configured: str) -> bool:
    if not configured:
        return False
    return hmac.compare_digest(submitted.encode("utf-8"), configured.encode("utf-8"))


def authenticate_admin(
    email: str,
    password: str,
    *,
    wordpress: WordPressClient,
    settings: Settings,
) -> Optional[dict]:
    """
    Return the WordPress profile when the credentials are the configured admin pair.

    Returns None on mismatch or when WordPress refuses the verification call.
    """
    username_ok = _matches(email, settings.wordpress_api_username)
    password_ok = _matches(password, settings.wordpress_api_application_password)
    if not (username_ok and password_ok):
        logger.warning("WordPress authentication failed for user: %s", email)
        return None

    try:
        profile = wordpress.get_current_user()
    except WordPressError as e:
        logger.error("WordPress authentication error: %s", e)
        return None
    return profile


def issue_token(db: DbClient, user: UserRecord) -> str:
    """Revoke every token of the user and hand out a fresh one."""
    revoked = db.revoke_user_tokens(user.id)
    if revoked:
        logger.info("Revoked %d token(s) for user %s", revoked, user.id)
    token = secrets.token_urlsafe(40)
    db.create_token(user.id, hash_token(token), name=TOKEN_NAME)
    return token


def login_user(db: DbClient, email: str, profile: dict) -> tuple[UserRecord, str]:
    name = profile.get("display_name") or DEFAULT_USER_NAME
    user = db.get_or_create_user(email=email, name=name)
    return user, issue_token(db, user)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: DbClient = Depends(get_db_client),
) -> AuthenticatedUser:
    """
    Dependency resolving the bearer token to the logged-in admin.
    """
    if credentials is None or not credentials.credentials:
        raise ApiError(401, UNAUTHENTICATED)

    token_hash = hash_token(credentials.credentials)
    user = db.get_user_by_token(token_hash)
    if user is None:
        raise ApiError(401, UNAUTHENTICATED)
    return AuthenticatedUser(user=user, token_hash=token_hash)
