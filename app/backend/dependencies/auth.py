from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.backend.core.errors import Forbidden, Unauthorized
from app.backend.core.tokens import InvalidToken, decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str


def _extract_token(request: Request, creds: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if creds and creds.credentials:
        return creds.credentials.strip() or None
    # HTTPBearer ignores anything that is not "Bearer <token>"
    header = request.headers.get("authorization", "")
    parts = header.split(" ", 1)
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip() or None
    return None


def get_current_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """Strict auth dependency; 401 when no token, 403 when the token is invalid/expired."""
    token = _extract_token(request, creds)
    if not token:
        raise Unauthorized("Access token required")

    try:
        payload = decode_access_token(token, request.app.state.settings)
        identity = Identity(user_id=int(payload["userId"]), username=str(payload.get("username", "")))
    except (InvalidToken, TypeError, ValueError):
        raise Forbidden("Invalid or expired token")

    request.state.identity = identity
    return identity
