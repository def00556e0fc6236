"""Catalog domain schemas - Pydantic models for services"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ...models import Service
from ..principals.schemas import PrincipalSummary
from .pricing import service_final_price

ServiceCategory = Literal[
    "beauty", "wellness", "healthcare", "fitness", "consulting", "automotive", "home_services", "other"
]
ModifierType = Literal["percentage", "fixed"]


class Discount(BaseModel):
    type: ModifierType
    value: float = Field(..., ge=0)
    description: Optional[str] = None
    validFrom: Optional[datetime] = None
    validTo: Optional[datetime] = None
    isActive: bool = True

    @model_validator(mode="after")
    def check_discount(self):
        if self.type == "percentage" and self.value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.validFrom and self.validTo and self.validTo < self.validFrom:
            raise ValueError("Discount validTo must be after validFrom")
        return self


class PriceModifier(BaseModel):
    type: ModifierType = "fixed"
    value: float = 0


class QualityVariation(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    priceModifier: PriceModifier = PriceModifier()
    durationModifier: int = 0


class Pricing(BaseModel):
    basePrice: float = Field(..., ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    discounts: list[Discount] = []


class BookingSettings(BaseModel):
    maxAdvanceBooking: int = 90  # days
    minAdvanceBooking: int = 0  # hours
    allowCancellation: bool = True
    cancellationDeadline: int = 24  # hours
    allowRescheduling: bool = True
    maxConcurrentBookings: int = 1


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    category: ServiceCategory
    subcategory: Optional[str] = None
    duration: int = Field(..., ge=5, le=480)
    pricing: Pricing
    qualityVariations: list[QualityVariation] = []
    providers: list[int] = []
    requirements: Optional[dict[str, Any]] = None
    images: list[str] = []
    tags: list[str] = []
    bookingSettings: BookingSettings = BookingSettings()


class ServiceUpdate(BaseModel):
    """Providers are managed through the assignment endpoints"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    category: Optional[ServiceCategory] = None
    subcategory: Optional[str] = None
    duration: Optional[int] = Field(None, ge=5, le=480)
    pricing: Optional[Pricing] = None
    qualityVariations: Optional[list[QualityVariation]] = None
    requirements: Optional[dict[str, Any]] = None
    images: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    bookingSettings: Optional[BookingSettings] = None
    isActive: Optional[bool] = None


class AssignProvidersRequest(BaseModel):
    providerIds: list[int]


class ServiceIdsRequest(BaseModel):
    serviceIds: list[int] = Field(..., min_length=1)


class AssignProviderRequest(BaseModel):
    serviceId: int


class Rating(BaseModel):
    average: float = 0
    count: int = 0


class Statistics(BaseModel):
    totalBookings: int = 0
    rating: Rating = Rating()
    revenue: float = 0


class ServiceResponse(BaseModel):
    id: int
    tenant: int
    name: str
    description: str
    category: str
    subcategory: Optional[str] = None
    duration: int
    pricing: dict[str, Any]
    finalPrice: float
    qualityVariations: list[dict[str, Any]] = []
    providers: list[PrincipalSummary] = []
    requirements: Optional[dict[str, Any]] = None
    images: list[str] = []
    tags: list[str] = []
    bookingSettings: Optional[dict[str, Any]] = None
    statistics: Statistics
    isActive: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_service(cls, service: Service) -> "ServiceResponse":
        return cls(
            id=service.id,
            tenant=service.tenant_id,
            name=service.name,
            description=service.description,
            category=service.category,
            subcategory=service.subcategory,
            duration=service.duration,
            pricing={
                "basePrice": service.base_price,
                "currency": service.currency,
                "discounts": service.discounts or [],
            },
            finalPrice=service_final_price(service),
            qualityVariations=service.quality_variations or [],
            providers=[PrincipalSummary.from_user(p) for p in sorted(service.providers, key=lambda p: p.id)],
            requirements=service.requirements,
            images=service.images or [],
            tags=service.tags or [],
            bookingSettings=service.booking_settings,
            statistics=Statistics(
                totalBookings=service.total_bookings or 0,
                rating=Rating(average=service.rating_average or 0, count=service.rating_count or 0),
                revenue=service.revenue or 0,
            ),
            isActive=service.is_active,
            createdAt=service.created_at,
            updatedAt=service.updated_at,
        )


class ServiceSummary(BaseModel):
    id: int
    name: str
    duration: int
    category: str
    finalPrice: float

    @classmethod
    def from_service(cls, service: Service) -> "ServiceSummary":
        return cls(
            id=service.id,
            name=service.name,
            duration=service.duration,
            category=service.category,
            finalPrice=service_final_price(service),
        )


class ProviderSlots(BaseModel):
    provider: PrincipalSummary
    availableSlots: list[str] = []


class ServiceAvailabilityResponse(BaseModel):
    service: ServiceSummary
    date: Optional[str] = None  # YYYY-MM-DD
    providers: list[ProviderSlots]
