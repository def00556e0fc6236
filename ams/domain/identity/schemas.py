"""Identity domain schemas - registration, login and profile payloads"""

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ...models import Tenant, User
from ...schemas import Address
from ...shared.validators import validate_email, validate_subdomain
from ..principals.schemas import Availability, Preferences, Profile, ProfileInput, Rating
from ..tenants.schemas import TenantData, TenantSummary

RegisterRole = Literal["admin", "tenant", "service_provider", "customer"]


class RegisterRequest(BaseModel):
    firstName: str = Field(..., min_length=1, max_length=50)
    lastName: str = Field(..., min_length=1, max_length=50)
    email: str
    password: str = Field(..., min_length=6)
    role: RegisterRole = "customer"
    phone: Optional[str] = None

    # tenant registration
    tenantData: Optional[TenantData] = None

    # provider / customer registration: one of these identifies the tenant
    tenantId: Optional[int] = None
    subdomain: Optional[str] = None

    profile: Optional[ProfileInput] = None
    availability: Optional[Availability] = None
    address: Optional[Address] = None
    preferences: Optional[Preferences] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("subdomain")
    @classmethod
    def check_subdomain(cls, v):
        if v is None:
            return v
        return validate_subdomain(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class ProfileUpdateRequest(BaseModel):
    firstName: Optional[str] = Field(None, min_length=1, max_length=50)
    lastName: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = None
    profile: Optional[ProfileInput] = None
    address: Optional[Address] = None
    preferences: Optional[Preferences] = None


class PasswordUpdateRequest(BaseModel):
    currentPassword: str
    newPassword: str = Field(..., min_length=6)


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=6)


class AuthProfile(BaseModel):
    """Role-normalized view of the authenticated principal"""

    id: int
    role: str
    tenantId: Optional[int] = None
    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    isActive: bool
    lastLogin: Optional[datetime] = None
    profile: Optional[Profile] = None
    tenant: Optional[TenantSummary] = None

    @classmethod
    def from_record(cls, record: Union[Tenant, User]) -> "AuthProfile":
        if isinstance(record, Tenant):
            return cls(
                id=record.id,
                role="tenant",
                tenantId=record.id,
                firstName=record.first_name,
                lastName=record.last_name,
                email=record.email,
                phone=record.phone,
                avatar=record.avatar_url,
                isActive=record.is_active,
                lastLogin=record.last_login,
                tenant=TenantSummary.from_tenant(record),
            )
        return cls(
            id=record.id,
            role=record.role,
            tenantId=record.tenant_id,
            firstName=record.first_name,
            lastName=record.last_name,
            email=record.email,
            phone=record.phone,
            avatar=record.avatar_url,
            isActive=record.is_active,
            lastLogin=record.last_login,
            profile=Profile(
                avatar=record.avatar_url,
                bio=record.bio,
                specializations=record.specializations or [],
                experience=record.experience,
                rating=Rating(average=record.rating_average or 0, count=record.rating_count or 0),
            ),
            tenant=TenantSummary.from_tenant(record.tenant) if record.tenant is not None else None,
        )


class AuthResponse(BaseModel):
    success: bool = True
    token: Optional[str] = None
    data: AuthProfile
    message: Optional[str] = None


class ForgotPasswordResponse(BaseModel):
    success: bool = True
    message: str
    resetToken: Optional[str] = None
