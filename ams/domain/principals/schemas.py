"""Principal domain schemas - Pydantic models for users and service providers"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...models import User
from ...schemas import Address
from ...shared.validators import time_to_minutes, validate_email, validate_time

ManagedRole = Literal["service_provider", "customer"]
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class TimeWindow(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @model_validator(mode="after")
    def check_order(self):
        if time_to_minutes(self.start) >= time_to_minutes(self.end):
            raise ValueError("Window start must be before its end")
        return self


class TimeOff(BaseModel):
    startDate: datetime
    endDate: datetime
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.endDate < self.startDate:
            raise ValueError("Time off must end after it starts")
        return self


class WeeklySchedule(BaseModel):
    monday: list[TimeWindow] = []
    tuesday: list[TimeWindow] = []
    wednesday: list[TimeWindow] = []
    thursday: list[TimeWindow] = []
    friday: list[TimeWindow] = []
    saturday: list[TimeWindow] = []
    sunday: list[TimeWindow] = []


class Availability(BaseModel):
    schedule: WeeklySchedule = WeeklySchedule()
    timeOff: list[TimeOff] = []


class NotificationPreferences(BaseModel):
    email: bool = True
    sms: bool = False
    push: bool = True


class Preferences(BaseModel):
    notifications: NotificationPreferences = NotificationPreferences()
    language: str = "en"


class ProfileInput(BaseModel):
    avatar: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    specializations: Optional[list[str]] = None
    experience: Optional[int] = Field(None, ge=0, le=60)


class Rating(BaseModel):
    average: float = 0
    count: int = 0


class Profile(ProfileInput):
    rating: Rating = Rating()


class PrincipalCreate(BaseModel):
    firstName: str = Field(..., min_length=1, max_length=50)
    lastName: str = Field(..., min_length=1, max_length=50)
    email: str
    password: str = Field(..., min_length=6)
    role: ManagedRole = "customer"
    phone: Optional[str] = None
    profile: Optional[ProfileInput] = None
    availability: Optional[Availability] = None
    address: Optional[Address] = None
    preferences: Optional[Preferences] = None
    tenantId: Optional[int] = None  # honoured for admins only

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class PrincipalUpdate(BaseModel):
    """Password, role and tenant cannot be changed through this schema"""

    firstName: Optional[str] = Field(None, min_length=1, max_length=50)
    lastName: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = None
    profile: Optional[ProfileInput] = None
    address: Optional[Address] = None
    preferences: Optional[Preferences] = None


class AvailabilityUpdate(BaseModel):
    availability: Availability


class PrincipalSummary(BaseModel):
    id: int
    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "PrincipalSummary":
        return cls(
            id=user.id,
            firstName=user.first_name,
            lastName=user.last_name,
            email=user.email,
            phone=user.phone,
        )


class PrincipalResponse(BaseModel):
    id: int
    tenant: Optional[int] = None
    role: str
    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None
    profile: Profile
    availability: Optional[dict[str, Any]] = None
    address: Optional[dict[str, Any]] = None
    preferences: Optional[dict[str, Any]] = None
    isActive: bool
    emailVerified: bool = False
    lastLogin: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    distanceKm: Optional[float] = None

    @classmethod
    def from_user(cls, user: User, distance_km: Optional[float] = None) -> "PrincipalResponse":
        return cls(
            id=user.id,
            tenant=user.tenant_id,
            role=user.role,
            firstName=user.first_name,
            lastName=user.last_name,
            email=user.email,
            phone=user.phone,
            profile=Profile(
                avatar=user.avatar_url,
                bio=user.bio,
                specializations=user.specializations or [],
                experience=user.experience,
                rating=Rating(average=user.rating_average or 0, count=user.rating_count or 0),
            ),
            availability=user.availability,
            address=user.address,
            preferences=user.preferences,
            isActive=user.is_active,
            emailVerified=user.email_verified,
            lastLogin=user.last_login,
            createdAt=user.created_at,
            updatedAt=user.updated_at,
            distanceKm=round(distance_km, 2) if distance_km is not None else None,
        )


class ScheduleResponse(BaseModel):
    provider: PrincipalSummary
    schedule: dict[str, Any]
    timeOff: list[dict[str, Any]]
