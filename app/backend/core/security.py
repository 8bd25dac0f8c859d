# app/backend/core/security.py
from __future__ import annotations

import base64
import hashlib
import re
from dataclasses import dataclass, field
from typing import Dict, List

import bcrypt

MIN_PASSWORD_LENGTH = 8

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class PasswordCheck:
    is_valid: bool
    reasons: List[str] = field(default_factory=list)
    requirements: Dict[str, bool] = field(default_factory=dict)


def is_valid_email(email: str) -> bool:
    return bool(email) and bool(_EMAIL_RE.match(email))


def validate_password_strength(password: str) -> PasswordCheck:
    password = password or ""
    rules = [
        ("minLength", len(password) >= MIN_PASSWORD_LENGTH,
         f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"),
        ("hasUpperCase", any(c.isupper() for c in password),
         "Password must contain an uppercase letter"),
        ("hasLowerCase", any(c.islower() for c in password),
         "Password must contain a lowercase letter"),
        ("hasNumbers", any(c.isdigit() for c in password),
         "Password must contain a number"),
        ("hasSpecialChar", any(not c.isalnum() and not c.isspace() for c in password),
         "Password must contain a special character"),
    ]
    requirements = {name: ok for name, ok, _ in rules}
    reasons = [reason for _, ok, reason in rules if not ok]
    return PasswordCheck(is_valid=not reasons, reasons=reasons, requirements=requirements)


def _pw_prehash(password: str) -> bytes:
    """SHA-256 then base64, so bcrypt never sees more than 44 bytes (its limit is 72)."""
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_pw_prehash(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_pw_prehash(password), password_hash.encode("utf-8"))
    except (ValueError, AttributeError):
        # malformed / empty hash
        return False
