"""
Auth module: password hashing, JWT creation/validation and the
get_current_user FastAPI dependency.

HTTP requests and socket handshakes share ``decode_token`` so both channels
accept exactly the same bearer tokens (signature + expiry).
"""

import time
from dataclasses import dataclass
from typing import Optional

import bcrypt
from jose import jwt, JWTError
from fastapi import Request

from healthsync.config import get_settings
from healthsync.exceptions import Unauthorized
from healthsync.records import ROLE_DOCTOR, ROLE_ORGANIZATION, UserRecord

ALGORITHM = "HS256"


@dataclass
class UserPrincipal:
    """Resolved identity attached to each request and socket."""
    id: str
    email: Optional[str]
    role: str                     # "doctor" | "organization"

    @property
    def is_doctor(self) -> bool:
        return self.role == ROLE_DOCTOR

    @property
    def is_organization(self) -> bool:
        return self.role == ROLE_ORGANIZATION


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_token(user: UserRecord) -> str:
    """Create a signed JWT for the given user."""
    settings = get_settings()
    payload = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "exp": int(time.time()) + settings.token_expire_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[UserPrincipal]:
    """Decode and validate a JWT. Returns None if invalid/expired."""
    try:
        settings = get_settings()
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("id")
    if not user_id:
        return None
    return UserPrincipal(
        id=str(user_id),
        email=payload.get("email"),
        role=payload.get("role", ROLE_DOCTOR),
    )


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


async def get_current_user(request: Request) -> UserPrincipal:
    """FastAPI dependency. Extracts and verifies the JWT from the Authorization header."""
    token = bearer_token(request.headers.get("Authorization"))
    if not token:
        raise Unauthorized("missing token")
    principal = decode_token(token)
    if not principal:
        raise Unauthorized("invalid token")
    return principal
