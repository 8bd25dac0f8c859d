from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from app.backend.core.config import Settings
from app.backend.core.errors import Conflict, Forbidden, Unauthorized, ValidationError
from app.backend.core.security import (
    hash_password,
    is_valid_email,
    validate_password_strength,
    verify_password,
)
from app.backend.core.tokens import create_access_token
from app.backend.db.store import DuplicateUser, UserStore
from app.backend.schemas.auth import AuthPayload, LoginRequest, RegisterRequest, UserOut

logger = logging.getLogger(__name__)


def _auth_payload(user, settings: Settings) -> AuthPayload:
    return AuthPayload(
        user=UserOut.from_user(user),
        token=create_access_token(user.id, user.username, settings),
        expires_in=settings.access_token_expire_minutes * 60,
    )


async def register_user(body: RegisterRequest, users: UserStore, settings: Settings) -> AuthPayload:
    """
    Validate → uniqueness pre-check → bcrypt in the thread pool → create.
    The store re-checks uniqueness at insert time, since another registration
    may have landed while hashing was off the event loop.
    """
    username = (body.username or "").strip()
    email = (body.email or "").strip().lower()
    password = body.password or ""

    if not username or not email or not password:
        raise ValidationError(
            "Missing required fields",
            extra={"required": ["username", "email", "password"]},
        )
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")

    check = validate_password_strength(password)
    if not check.is_valid:
        raise ValidationError(
            "Password does not meet requirements",
            extra={"requirements": check.reasons},
        )

    if users.exists(username=username, email=email):
        raise Conflict("User already exists")

    password_hash = await run_in_threadpool(hash_password, password, settings.bcrypt_rounds)

    try:
        user = users.create(username=username, email=email, password_hash=password_hash)
    except DuplicateUser:
        raise Conflict("User already exists")

    logger.info("user registered id=%s username=%s", user.id, user.username)
    return _auth_payload(user, settings)


async def login_user(body: LoginRequest, users: UserStore, settings: Settings) -> AuthPayload:
    email = (body.email or "").strip().lower()
    password = body.password or ""
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = users.get_by_email(email)
    if user is None:
        raise Unauthorized("Invalid credentials")

    ok = await run_in_threadpool(verify_password, password, user.password_hash)
    if not ok:
        logger.info("login failed user=%s", user.id)
        raise Unauthorized("Invalid credentials")

    if not user.is_active:
        raise Forbidden("Account is deactivated")

    user = users.touch_login(user.id) or user
    return _auth_payload(user, settings)
