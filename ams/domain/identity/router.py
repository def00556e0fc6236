"""Auth router - registration, login and account endpoints"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import Principal, get_current_principal
from ...database import get_db
from ...models import Tenant
from ...schemas import Envelope, MessageResponse, ok
from ..tenants.schemas import TenantResponse
from .schemas import (
    AuthProfile,
    AuthResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    PasswordUpdateRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from .service import IdentityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_identity_service(db: Session = Depends(get_db)) -> IdentityService:
    """Dependency injection for IdentityService"""
    return IdentityService(db)


@router.post("/register", status_code=201)
async def register(data: RegisterRequest, service: IdentityService = Depends(get_identity_service)):
    """
    Register a tenant, service provider or customer.

    Tenants receive their business record and must log in afterwards.
    Providers and customers receive a token straight away.
    """
    record, token = service.register(data)

    if isinstance(record, Tenant):
        body = {
            "success": True,
            "message": "Tenant registered successfully. Please log in to continue.",
            "data": TenantResponse.from_tenant(record).model_dump(mode="json"),
        }
        return JSONResponse(status_code=201, content=body)

    response = AuthResponse(token=token, data=AuthProfile.from_record(record), message="Registration successful")
    return JSONResponse(status_code=201, content=response.model_dump(mode="json"))


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, service: IdentityService = Depends(get_identity_service)):
    record, token = service.login(data.email, data.password)
    return AuthResponse(token=token, data=AuthProfile.from_record(record))


@router.get("/me", response_model=Envelope[AuthProfile])
async def get_me(principal: Principal = Depends(get_current_principal)):
    return ok(AuthProfile.from_record(principal.record))


@router.put("/profile", response_model=Envelope[AuthProfile])
async def update_profile(
    data: ProfileUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    service: IdentityService = Depends(get_identity_service),
):
    record = service.update_profile(principal, data)
    return ok(AuthProfile.from_record(record), message="Profile updated successfully")


@router.put("/password", response_model=AuthResponse)
async def update_password(
    data: PasswordUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    service: IdentityService = Depends(get_identity_service),
):
    token = service.update_password(principal, data.currentPassword, data.newPassword)
    return AuthResponse(token=token, data=AuthProfile.from_record(principal.record), message="Password updated")


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(data: ForgotPasswordRequest, service: IdentityService = Depends(get_identity_service)):
    reset_token = service.forgot_password(data.email)
    return ForgotPasswordResponse(message="Password reset token generated", resetToken=reset_token)


@router.put("/reset-password/{token}", response_model=MessageResponse)
async def reset_password(
    token: str,
    data: ResetPasswordRequest,
    service: IdentityService = Depends(get_identity_service),
):
    service.reset_password(token, data.password)
    return {"success": True, "message": "Password reset successful. Please log in with your new password."}


@router.post("/logout", response_model=MessageResponse)
async def logout(_: Principal = Depends(get_current_principal)):
    """Tokens are stateless; the client discards its copy"""
    return {"success": True, "message": "Logged out successfully"}
