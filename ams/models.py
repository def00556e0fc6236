from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Principal roles. The tenant-owner principal is the Tenant row itself.
ROLE_ADMIN = "admin"
ROLE_TENANT = "tenant"
ROLE_SERVICE_PROVIDER = "service_provider"
ROLE_CUSTOMER = "customer"
ROLES = (ROLE_ADMIN, ROLE_TENANT, ROLE_SERVICE_PROVIDER, ROLE_CUSTOMER)
USER_ROLES = (ROLE_ADMIN, ROLE_SERVICE_PROVIDER, ROLE_CUSTOMER)


# Many-to-many assignment between services and providers. Rows are inserted and
# deleted with set-level statements so concurrent writers never rewrite a list.
service_providers = Table(
    "service_providers",
    Base.metadata,
    Column("service_id", Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
    Column("provider_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("assigned_at", DateTime, server_default=func.now()),
)


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    # Owner identity (the tenant logs in with these credentials)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    # Business
    name = Column(String(100), nullable=False)
    subdomain = Column(String(100), unique=True, index=True, nullable=False)
    business_type = Column(String(50), nullable=False)  # salon, spa, clinic, ...
    business_description = Column(Text, nullable=True)
    business_website = Column(String(500), nullable=True)
    address = Column(JSON, nullable=True)  # {"street", "city", "state", "zipCode", "country"}
    # Subscription
    subscription_plan = Column(String(20), default="basic", nullable=False)  # basic, premium, enterprise
    subscription_status = Column(String(20), default="active", nullable=False)  # active, inactive, suspended
    subscription_start_date = Column(DateTime, server_default=func.now())
    subscription_end_date = Column(DateTime, nullable=True)
    settings = Column(JSON, nullable=True)  # {"timeZone": "UTC", "currency": "USD", "businessHours": {...}}
    is_active = Column(Boolean, default=True, nullable=False)
    password_reset_token = Column(String(500), nullable=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    users = relationship("User", back_populates="tenant")
    services = relationship("Service", back_populates="tenant")
    bookings = relationship("Booking", back_populates="tenant")


class User(Base):
    """Principal with a role discriminator: admin, service_provider or customer"""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=True)  # NULL for admin
    role = Column(String(20), index=True, nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    # Profile
    avatar_url = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)  # stored HTML-escaped, can outgrow the 500 char input limit
    specializations = Column(JSON, default=list, nullable=True)
    experience = Column(Integer, nullable=True)  # years, 0..60
    rating_average = Column(Float, default=0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)
    # {"schedule": {"monday": [{"start": "09:00", "end": "17:00"}], ...}, "timeOff": [...]}
    availability = Column(JSON, nullable=True)
    address = Column(JSON, nullable=True)  # includes optional {"coordinates": {"latitude", "longitude"}}
    preferences = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    email_verification_token = Column(String(255), nullable=True)
    password_reset_token = Column(String(500), nullable=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="users")
    services = relationship("Service", secondary=service_providers, back_populates="providers")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    name = Column(String(100), index=True, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), index=True, nullable=False)
    subcategory = Column(String(100), nullable=True)
    duration = Column(Integer, nullable=False)  # minutes, 5..480
    # Pricing
    base_price = Column(Float, index=True, nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    discounts = Column(JSON, default=list, nullable=True)
    quality_variations = Column(JSON, default=list, nullable=True)
    requirements = Column(JSON, nullable=True)
    images = Column(JSON, default=list, nullable=True)
    tags = Column(JSON, default=list, nullable=True)
    booking_settings = Column(JSON, nullable=True)
    # Statistics
    total_bookings = Column(Integer, default=0, nullable=False)
    rating_average = Column(Float, default=0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)
    revenue = Column(Float, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="services")
    providers = relationship("User", secondary=service_providers, back_populates="services")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), index=True, nullable=False)
    provider_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    appointment_date = Column(Date, index=True, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    duration = Column(Integer, nullable=False)  # minutes, copied from the service at creation
    status = Column(String(20), default="pending", index=True, nullable=False)
    # Snapshot taken at creation, never recomputed from the service
    pricing = Column(JSON, nullable=False)
    selected_quality_variation = Column(String(100), nullable=True)
    customer_notes = Column(Text, nullable=True)
    provider_notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)
    payment = Column(JSON, nullable=True)
    reminders = Column(JSON, default=list, nullable=True)
    feedback = Column(JSON, nullable=True)
    cancellation = Column(JSON, nullable=True)
    reschedule = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="bookings")
    customer = relationship("User", foreign_keys=[customer_id])
    provider = relationship("User", foreign_keys=[provider_id])
    service = relationship("Service")
