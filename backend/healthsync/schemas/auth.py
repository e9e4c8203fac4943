from typing import Any, Optional

from healthsync.schemas.base import CamelModel


class SignupRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    profile: dict[str, Any] = {}


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(CamelModel):
    email: Optional[str] = None
    name: Optional[str] = None
    admin: Optional[str] = None
    specialty: Optional[str] = None
    organization_id: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    email: str
    role: str
    profile: dict[str, Any] = {}


class UserEnvelope(CamelModel):
    user: UserResponse


class AuthResponse(UserEnvelope):
    token: str


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    email: Optional[str] = None
    otp: Optional[str] = None
    new_password: Optional[str] = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str
