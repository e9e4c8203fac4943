import re
import secrets
from datetime import timedelta
from typing import Optional

import structlog

from healthsync.auth import UserPrincipal, create_token, hash_password, verify_password
from healthsync.config import get_settings
from healthsync.exceptions import Conflict, NotFound, Unauthorized, ValidationError
from healthsync.records import ROLE_DOCTOR, ROLE_ORGANIZATION, ROLES, UserRecord, utcnow
from healthsync.services.organization_service import slugify
from healthsync.stores.base import Storage

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
RESET_REQUESTED_MESSAGE = "If the email exists, an OTP has been sent. Please check your inbox."
RESET_DONE_MESSAGE = "Password reset successful. You can now login with your new password."


class AccountService:
    """Signup, login and profile maintenance for doctors and organization admins."""

    def __init__(self, storage: Storage, mailer=None, reset_ttl_seconds: Optional[int] = None):
        self.storage = storage
        self.mailer = mailer
        if reset_ttl_seconds is None:
            reset_ttl_seconds = get_settings().password_reset_ttl_seconds
        self.reset_ttl = timedelta(seconds=reset_ttl_seconds)

    async def signup(
        self,
        email: Optional[str],
        password: Optional[str],
        role: Optional[str] = None,
        profile: Optional[dict] = None,
    ) -> tuple[str, UserRecord]:
        missing = [name for name, value in (("email", email), ("password", password)) if not value]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format")
        role = role or ROLE_DOCTOR
        if role not in ROLES:
            raise ValidationError("Invalid role")
        if await self.storage.users.find_by_email(email):
            raise Conflict("User with this email already exists")

        profile = dict(profile or {})
        user = await self.storage.users.create(email, hash_password(password), role, profile)
        logger.info("user_created", user_id=user.id, role=role)

        if role == ROLE_ORGANIZATION:
            org_name = profile.get("organization") or profile.get("name") or ""
            if org_name:
                org = await self.storage.organizations.create(org_name, slugify(org_name), admin=user.id)
                profile["organizationId"] = org.id
                user = await self.storage.users.update(user.id, profile=profile)
                logger.info("organization_created", org_id=org.id, admin_id=user.id)

        return create_token(user), user

    async def login(self, email: Optional[str], password: Optional[str]) -> tuple[str, UserRecord]:
        if not email or not password:
            raise ValidationError("Email and password are required")
        user = await self.storage.users.find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("login_failed")
            raise Unauthorized("Invalid credentials. Please check your email and password.")
        logger.info("login_succeeded", user_id=user.id)
        return create_token(user), user

    async def current_user(self, principal: UserPrincipal) -> UserRecord:
        user = await self.storage.users.get(principal.id)
        if not user and principal.email:
            user = await self.storage.users.find_by_email(principal.email)
        if not user:
            raise NotFound("User not found")
        return user

    async def update_profile(self, principal: UserPrincipal, updates: dict) -> UserRecord:
        user = await self.current_user(principal)

        new_email = None
        if updates.get("email") and updates["email"] != user.email:
            existing = await self.storage.users.find_by_email(updates["email"])
            if existing and existing.id != user.id:
                raise Conflict("Email already in use")
            new_email = updates["email"]

        profile_updates = {}
        if user.role == ROLE_ORGANIZATION and updates.get("admin") is not None:
            profile_updates["admin"] = updates["admin"]
        elif updates.get("name") is not None:
            profile_updates["name"] = updates["name"]
        if updates.get("specialty") is not None:
            profile_updates["specialty"] = updates["specialty"]
        if updates.get("organizationId") is not None:
            profile_updates["organizationId"] = updates["organizationId"]

        if new_email is None and not profile_updates:
            return user

        profile = dict(user.profile, **profile_updates) if profile_updates else None
        updated = await self.storage.users.update(user.id, email=new_email, profile=profile)
        logger.info("profile_updated", user_id=user.id, fields=sorted(profile_updates))
        return updated

    async def forgot_password(self, email: Optional[str]) -> str:
        """Issue a one-time reset code. The reply does not reveal whether the account exists."""
        if not email:
            raise ValidationError("Email is required")
        user = await self.storage.users.find_by_email(email)
        if not user:
            logger.warning("password_reset_unknown_email")
            return RESET_REQUESTED_MESSAGE

        otp = str(secrets.randbelow(900000) + 100000)
        reset = await self.storage.password_resets.create(email, otp, utcnow() + self.reset_ttl)
        logger.info("password_reset_requested", user_id=user.id, reset_id=reset.id)

        if self.mailer is not None:
            try:
                await self.mailer.send_password_reset(email, otp)
            except Exception as exc:
                logger.warning("password_reset_email_failed", user_id=user.id, error=str(exc))
        return RESET_REQUESTED_MESSAGE

    async def reset_password(self, email: Optional[str], otp: Optional[str], new_password: Optional[str]) -> str:
        missing = [
            name
            for name, value in (("email", email), ("otp", otp), ("newPassword", new_password))
            if not value
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        reset = await self.storage.password_resets.find_valid(email, otp, utcnow())
        if not reset:
            logger.info("password_reset_rejected")
            raise ValidationError("Invalid or expired OTP")
        user = await self.storage.users.find_by_email(email)
        if not user:
            raise NotFound("User not found")
        # Claim the code before changing the password; only one claim succeeds
        if not await self.storage.password_resets.mark_used(reset.id):
            raise ValidationError("Invalid or expired OTP")

        await self.storage.users.update(user.id, password_hash=hash_password(new_password))
        logger.info("password_reset_completed", user_id=user.id)
        return RESET_DONE_MESSAGE
