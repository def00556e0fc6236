import itertools
import os

# Configure the application before anything from ams is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"

from datetime import date, datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from ams.auth import principal_from_record  # noqa: E402
from ams.database import Base, SessionLocal, engine  # noqa: E402
from ams.domain.bookings.service import compute_end_time  # noqa: E402
from ams.domain.catalog.pricing import build_pricing_snapshot  # noqa: E402
from ams.main import app  # noqa: E402
from ams.models import Booking, Service, Tenant, User, service_providers  # noqa: E402
from ams.security_utils import create_access_token, hash_password  # noqa: E402

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)

_sequence = itertools.count(1)

WEEKDAY_SCHEDULE = {
    day: [{"start": "09:00", "end": "12:00"}]
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
}


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Bearer headers for a Tenant or User record"""

    def _headers(record) -> dict:
        principal = principal_from_record(record)
        token = create_access_token(principal.id, principal.role, principal.tenant_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_tenant(db):
    def _make(**overrides) -> Tenant:
        n = next(_sequence)
        data = {
            "first_name": "Tina",
            "last_name": "Owner",
            "email": f"owner{n}@example.com",
            "password_hash": PASSWORD_HASH,
            "name": f"Studio {n}",
            "subdomain": f"studio-{n}",
            "business_type": "salon",
            "settings": {"timeZone": "UTC", "currency": "USD"},
        }
        data.update(overrides)
        tenant = Tenant(**data)
        db.add(tenant)
        db.commit()
        db.refresh(tenant)
        return tenant

    return _make


@pytest.fixture
def make_user(db):
    def _make(tenant=None, role="customer", **overrides) -> User:
        n = next(_sequence)
        data = {
            "tenant_id": tenant.id if tenant is not None else None,
            "role": role,
            "first_name": "Pat",
            "last_name": f"Person{n}",
            "email": f"{role}{n}@example.com",
            "password_hash": PASSWORD_HASH,
            "specializations": [],
        }
        if role == "service_provider":
            data["availability"] = {"schedule": WEEKDAY_SCHEDULE, "timeOff": []}
        data.update(overrides)
        user = User(**data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_service(db):
    def _make(tenant, providers=(), **overrides) -> Service:
        n = next(_sequence)
        data = {
            "tenant_id": tenant.id,
            "name": f"Haircut {n}",
            "description": "A classic haircut",
            "category": "beauty",
            "duration": 60,
            "base_price": 50.0,
            "currency": "USD",
            "discounts": [],
            "quality_variations": [],
            "tags": [],
        }
        data.update(overrides)
        service = Service(**data)
        db.add(service)
        db.commit()
        for provider in providers:
            db.execute(service_providers.insert().values(service_id=service.id, provider_id=provider.id))
        db.commit()
        db.refresh(service)
        return service

    return _make


@pytest.fixture
def make_booking(db):
    def _make(service, provider, customer, status="pending", **overrides) -> Booking:
        start_time = overrides.pop("start_time", "10:00")
        data = {
            "tenant_id": service.tenant_id,
            "customer_id": customer.id,
            "service_id": service.id,
            "provider_id": provider.id,
            "appointment_date": date(2030, 1, 15),
            "start_time": start_time,
            "end_time": compute_end_time(start_time, service.duration),
            "duration": service.duration,
            "status": status,
            "pricing": build_pricing_snapshot(service, datetime.utcnow()),
            "reminders": [],
        }
        data.update(overrides)
        booking = Booking(**data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make


@pytest.fixture
def salon(make_tenant, make_user, make_service):
    """One tenant with a provider, a customer and an assigned service"""
    tenant = make_tenant()
    provider = make_user(tenant, role="service_provider")
    customer = make_user(tenant, role="customer")
    service = make_service(tenant, providers=[provider])
    return {"tenant": tenant, "provider": provider, "customer": customer, "service": service}
