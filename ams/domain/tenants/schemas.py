"""Tenant domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Tenant
from ...schemas import Address
from ...shared.validators import validate_email, validate_subdomain

BusinessType = Literal["salon", "spa", "clinic", "consulting", "fitness", "automotive", "other"]
Currency = Literal["USD", "EUR", "GBP", "INR", "CAD", "AUD"]
SubscriptionPlan = Literal["basic", "premium", "enterprise"]
SubscriptionStatus = Literal["active", "inactive", "suspended"]


class Business(BaseModel):
    type: BusinessType
    description: Optional[str] = Field(None, max_length=1000)
    website: Optional[str] = None


class TenantSettings(BaseModel):
    timeZone: str = "UTC"
    currency: Currency
    businessHours: Optional[dict[str, Any]] = None


class Subscription(BaseModel):
    plan: SubscriptionPlan = "basic"
    status: SubscriptionStatus = "active"
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None


class TenantData(BaseModel):
    """Business details supplied when a tenant registers"""

    name: str = Field(..., min_length=1, max_length=100)
    subdomain: str
    phone: Optional[str] = None
    business: Business
    address: Optional[Address] = None
    settings: TenantSettings

    @field_validator("subdomain")
    @classmethod
    def check_subdomain(cls, v):
        return validate_subdomain(v)


class TenantCreate(TenantData):
    """Schema for an admin creating a tenant directly"""

    firstName: str = Field(..., min_length=1, max_length=50)
    lastName: str = Field(..., min_length=1, max_length=50)
    email: str
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class TenantUpdate(BaseModel):
    firstName: Optional[str] = Field(None, min_length=1, max_length=50)
    lastName: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    avatarUrl: Optional[str] = None
    business: Optional[Business] = None
    address: Optional[Address] = None
    settings: Optional[TenantSettings] = None
    subscription: Optional[Subscription] = None


class TenantResponse(BaseModel):
    id: int
    firstName: str
    lastName: str
    name: str
    subdomain: str
    email: str
    phone: Optional[str] = None
    avatarUrl: Optional[str] = None
    business: Business
    address: Optional[dict[str, Any]] = None
    subscription: Subscription
    settings: Optional[dict[str, Any]] = None
    isActive: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "TenantResponse":
        return cls(
            id=tenant.id,
            firstName=tenant.first_name,
            lastName=tenant.last_name,
            name=tenant.name,
            subdomain=tenant.subdomain,
            email=tenant.email,
            phone=tenant.phone,
            avatarUrl=tenant.avatar_url,
            business=Business(
                type=tenant.business_type,
                description=tenant.business_description,
                website=tenant.business_website,
            ),
            address=tenant.address,
            subscription=Subscription(
                plan=tenant.subscription_plan,
                status=tenant.subscription_status,
                startDate=tenant.subscription_start_date,
                endDate=tenant.subscription_end_date,
            ),
            settings=tenant.settings,
            isActive=tenant.is_active,
            createdAt=tenant.created_at,
            updatedAt=tenant.updated_at,
        )


class TenantSummary(BaseModel):
    """Public listing shape used by search"""

    id: int
    name: str
    subdomain: str
    business: Business
    address: Optional[dict[str, Any]] = None

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "TenantSummary":
        return cls(
            id=tenant.id,
            name=tenant.name,
            subdomain=tenant.subdomain,
            business=Business(
                type=tenant.business_type,
                description=tenant.business_description,
                website=tenant.business_website,
            ),
            address=tenant.address,
        )


class TenantStats(BaseModel):
    totalServices: int
    activeServices: int
    totalBookings: int
    bookingsByStatus: dict[str, int]
    totalRevenue: float
    activeProviders: int
    totalCustomers: int
