from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt

from app.backend.core.config import Settings

# ← python-jose 사용
DEFAULT_ALG = "HS256"


class InvalidToken(Exception):
    """서명 불일치·만료·type 오류 등 검증 실패."""


# ---- 공통 ----
def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def issue_token(
    claims: Dict[str, Any],
    secret: str,
    ttl: timedelta,
    algorithm: str = DEFAULT_ALG,
) -> str:
    now = _utcnow()
    to_encode = claims.copy()
    to_encode.setdefault("typ", "access")
    to_encode["iat"] = int(now.timestamp())
    to_encode["exp"] = int((now + ttl).timestamp())
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def verify_token(token: str, secret: str, algorithm: str = DEFAULT_ALG) -> Dict[str, Any]:
    """
    유효한 Access Token이면 payload(dict)를 반환,
    서명 불일치·만료·type 오류가 나면 InvalidToken을 던진다.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as exc:
        raise InvalidToken(str(exc)) from exc
    if payload.get("typ") != "access":
        raise InvalidToken("Invalid token type")
    if "userId" not in payload:
        raise InvalidToken("Missing userId")
    return payload


# ---- Access Token ----
def create_access_token(user_id: int, username: str, settings: Settings) -> str:
    payload = {"sub": str(user_id), "userId": user_id, "username": username}
    return issue_token(
        payload,
        settings.jwt_secret_key,
        timedelta(minutes=settings.access_token_expire_minutes),
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    return verify_token(token, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
