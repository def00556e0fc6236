"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Booking, Service
from ...shared.validators import validate_time
from ..principals.schemas import PrincipalSummary

PaymentMethod = Literal["cash", "card", "digital_wallet", "bank_transfer", "other"]
PaymentStatus = Literal["pending", "paid", "partially_paid", "refunded", "failed"]
ReminderType = Literal["email", "sms", "push"]


class BookingCreate(BaseModel):
    serviceId: int
    providerId: int
    customerId: Optional[int] = None  # required unless a customer books for themselves
    appointmentDate: date
    startTime: str
    endTime: Optional[str] = None
    selectedQualityVariation: Optional[str] = None
    customerNotes: Optional[str] = Field(None, max_length=500)

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class Payment(BaseModel):
    method: Optional[PaymentMethod] = None
    status: PaymentStatus = "pending"
    transactionId: Optional[str] = None
    paidAmount: Optional[float] = Field(None, ge=0)
    paidAt: Optional[datetime] = None
    refundAmount: Optional[float] = Field(None, ge=0)
    refundedAt: Optional[datetime] = None


class Reminder(BaseModel):
    type: ReminderType
    scheduledFor: datetime
    sent: bool = False
    sentAt: Optional[datetime] = None


class BookingUpdate(BaseModel):
    """Pricing, tenant and references are never updatable"""

    customerNotes: Optional[str] = Field(None, max_length=500)
    providerNotes: Optional[str] = Field(None, max_length=500)
    internalNotes: Optional[str] = Field(None, max_length=500)
    payment: Optional[Payment] = None
    reminders: Optional[list[Reminder]] = None


class StatusUpdate(BaseModel):
    status: str


class RescheduleRequest(BaseModel):
    appointmentDate: date
    startTime: str
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator("startTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class FeedbackRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class BookedService(BaseModel):
    id: int
    name: str
    category: str
    duration: int

    @classmethod
    def from_service(cls, service: Service) -> "BookedService":
        return cls(id=service.id, name=service.name, category=service.category, duration=service.duration)


class Notes(BaseModel):
    customer: Optional[str] = None
    provider: Optional[str] = None
    internal: Optional[str] = None


class BookingResponse(BaseModel):
    id: int
    tenant: int
    customer: PrincipalSummary
    service: BookedService
    provider: PrincipalSummary
    appointmentDate: date
    startTime: str
    endTime: str
    duration: int
    status: str
    pricing: dict[str, Any]
    selectedQualityVariation: Optional[str] = None
    notes: Notes
    payment: Optional[dict[str, Any]] = None
    reminders: list[dict[str, Any]] = []
    feedback: Optional[dict[str, Any]] = None
    cancellation: Optional[dict[str, Any]] = None
    reschedule: Optional[dict[str, Any]] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            tenant=booking.tenant_id,
            customer=PrincipalSummary.from_user(booking.customer),
            service=BookedService.from_service(booking.service),
            provider=PrincipalSummary.from_user(booking.provider),
            appointmentDate=booking.appointment_date,
            startTime=booking.start_time,
            endTime=booking.end_time,
            duration=booking.duration,
            status=booking.status,
            pricing=booking.pricing,
            selectedQualityVariation=booking.selected_quality_variation,
            notes=Notes(
                customer=booking.customer_notes,
                provider=booking.provider_notes,
                internal=booking.internal_notes,
            ),
            payment=booking.payment,
            reminders=booking.reminders or [],
            feedback=booking.feedback,
            cancellation=booking.cancellation,
            reschedule=booking.reschedule,
            createdAt=booking.created_at,
            updatedAt=booking.updated_at,
        )


class ProviderAvailabilityResponse(BaseModel):
    providerId: int
    date: str  # YYYY-MM-DD
    slotMinutes: int
    availableSlots: list[str]


class MetadataService(BaseModel):
    id: int
    name: str
    pricing: dict[str, Any]
    isActive: bool

    @classmethod
    def from_service(cls, service: Service) -> "MetadataService":
        return cls(
            id=service.id,
            name=service.name,
            pricing={
                "basePrice": service.base_price,
                "currency": service.currency,
                "discounts": service.discounts or [],
            },
            isActive=service.is_active,
        )


class BookingMetadata(BaseModel):
    tenantId: int
    providerId: int
    services: list[MetadataService]
