from fastapi import APIRouter, Depends

from healthsync.auth import get_current_user, UserPrincipal
from healthsync.dependencies import get_account_service
from healthsync.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
    ResetPasswordRequest,
    SignupRequest,
    UserEnvelope,
    UserResponse,
)
from healthsync.services.account_service import AccountService

router = APIRouter()


@router.post("/signup", response_model=AuthResponse, status_code=201)
async def signup(body: SignupRequest, accounts: AccountService = Depends(get_account_service)):
    token, user = await accounts.signup(body.email, body.password, body.role, body.profile)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, accounts: AccountService = Depends(get_account_service)):
    token, user = await accounts.login(body.email, body.password)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserEnvelope)
async def me(
    accounts: AccountService = Depends(get_account_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    user = await accounts.current_user(current_user)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put("/me", response_model=UserEnvelope)
async def update_me(
    body: ProfileUpdate,
    accounts: AccountService = Depends(get_account_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    user = await accounts.update_profile(current_user, body.model_dump(by_alias=True, exclude_none=True))
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("/logout")
async def logout():
    """Tokens are stateless; the client drops its copy."""
    return {"success": True}


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: ForgotPasswordRequest, accounts: AccountService = Depends(get_account_service)):
    message = await accounts.forgot_password(body.email)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, accounts: AccountService = Depends(get_account_service)):
    message = await accounts.reset_password(body.email, body.otp, body.new_password)
    return MessageResponse(message=message)
