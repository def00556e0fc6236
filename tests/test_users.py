import pytest
from conftest import PASSWORD

from ams.models import User
from create_admin import create_admin

API = "/api/v1"

WEEKLY = {
    "availability": {
        "schedule": {"monday": [{"start": "09:00", "end": "17:00"}], "saturday": [{"start": "10:00", "end": "14:00"}]},
        "timeOff": [{"startDate": "2030-02-01T00:00:00", "endDate": "2030-02-07T00:00:00", "reason": "Vacation"}],
    }
}


def _new_user(**overrides):
    payload = {"firstName": "Robin", "lastName": "Lee", "email": "robin@example.com", "password": PASSWORD}
    payload.update(overrides)
    return payload


def test_tenant_creates_users_in_its_own_tenant(client, make_tenant, auth_headers):
    tenant = make_tenant()
    response = client.post(f"{API}/users", json=_new_user(tenantId=999), headers=auth_headers(tenant))
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["tenant"] == tenant.id
    assert data["role"] == "customer"
    assert "password" not in data


def test_admin_must_name_the_tenant(client, make_tenant, make_user, auth_headers):
    tenant = make_tenant()
    headers = auth_headers(make_user(None, role="admin"))

    response = client.post(f"{API}/users", json=_new_user(), headers=headers)
    assert response.status_code == 400

    response = client.post(f"{API}/users", json=_new_user(tenantId=999), headers=headers)
    assert response.status_code == 404

    response = client.post(
        f"{API}/users", json=_new_user(tenantId=tenant.id, role="service_provider"), headers=headers
    )
    assert response.status_code == 201
    assert response.json()["data"]["tenant"] == tenant.id
    assert response.json()["data"]["role"] == "service_provider"


def test_users_cannot_be_created_as_admin(client, make_tenant, auth_headers):
    response = client.post(f"{API}/users", json=_new_user(role="admin"), headers=auth_headers(make_tenant()))
    assert response.status_code == 400


def test_duplicate_email_is_rejected(client, salon, auth_headers):
    response = client.post(
        f"{API}/users", json=_new_user(email=salon["customer"].email), headers=auth_headers(salon["tenant"])
    )
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists with this email"


def test_customers_cannot_manage_users(client, salon, auth_headers):
    headers = auth_headers(salon["customer"])
    assert client.get(f"{API}/users", headers=headers).status_code == 403
    assert client.post(f"{API}/users", json=_new_user(), headers=headers).status_code == 403


def test_list_users_by_role(client, salon, auth_headers):
    response = client.get(f"{API}/users", params={"role": "customer"}, headers=auth_headers(salon["tenant"]))
    assert [u["id"] for u in response.json()["data"]] == [salon["customer"].id]


def test_users_read_only_themselves(client, make_user, salon, auth_headers):
    other = make_user(salon["tenant"])
    headers = auth_headers(salon["customer"])

    assert client.get(f"{API}/users/{salon['customer'].id}", headers=headers).status_code == 200
    response = client.get(f"{API}/users/{other.id}", headers=headers)
    assert response.status_code == 403

    assert client.get(f"{API}/users/{other.id}", headers=auth_headers(salon["tenant"])).status_code == 200


def test_update_own_user(client, salon, auth_headers):
    response = client.put(
        f"{API}/users/{salon['customer'].id}",
        json={"phone": "+44 20 7946 0000", "address": {"city": "London", "country": "UK"}},
        headers=auth_headers(salon["customer"]),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["phone"] == "+44 20 7946 0000"
    assert data["address"] == {"city": "London", "country": "UK"}


def test_deactivate_user_is_idempotent(client, db, salon, auth_headers):
    headers = auth_headers(salon["tenant"])
    url = f"{API}/users/{salon['customer'].id}"

    response = client.delete(url, headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "User deactivated successfully"
    assert client.delete(url, headers=headers).status_code == 200

    db.expire_all()
    assert db.get(User, salon["customer"].id).is_active is False

    response = client.get(f"{API}/users", params={"isActive": "false"}, headers=headers)
    assert [u["id"] for u in response.json()["data"]] == [salon["customer"].id]


# ============================================================================
# SERVICE PROVIDERS
# ============================================================================


def test_create_service_provider(client, salon, auth_headers):
    response = client.post(
        f"{API}/service-providers",
        json=_new_user(role="customer", profile={"specializations": ["Massage"], "experience": 4}, **WEEKLY),
        headers=auth_headers(salon["tenant"]),
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["role"] == "service_provider"
    assert data["profile"]["specializations"] == ["Massage"]
    assert data["availability"]["schedule"]["monday"] == [{"start": "09:00", "end": "17:00"}]


def test_providers_are_readable_inside_the_tenant(client, salon, auth_headers):
    response = client.get(f"{API}/service-providers/{salon['provider'].id}", headers=auth_headers(salon["customer"]))
    assert response.status_code == 200

    response = client.get(f"{API}/service-providers/{salon['customer'].id}", headers=auth_headers(salon["tenant"]))
    assert response.status_code == 404
    assert response.json()["message"] == "Service provider not found"


def test_provider_list_filters(client, make_user, salon, auth_headers):
    colorist = make_user(salon["tenant"], role="service_provider", specializations=["Coloring", "Cuts"])
    make_user(salon["tenant"], role="service_provider", first_name="Morgan", is_active=False)
    headers = auth_headers(salon["customer"])

    response = client.get(f"{API}/service-providers", params={"specialization": "Coloring"}, headers=headers)
    assert [p["id"] for p in response.json()["data"]] == [colorist.id]

    response = client.get(f"{API}/service-providers", params={"name": "morgan"}, headers=headers)
    assert response.json()["count"] == 1

    response = client.get(f"{API}/service-providers", params={"isActive": "true"}, headers=headers)
    assert {p["id"] for p in response.json()["data"]} == {salon["provider"].id, colorist.id}


def test_provider_list_orders_by_rating(client, make_user, salon, auth_headers):
    star = make_user(salon["tenant"], role="service_provider", rating_average=4.9, rating_count=12)
    response = client.get(f"{API}/service-providers", headers=auth_headers(salon["tenant"]))
    assert response.json()["data"][0]["id"] == star.id


def test_provider_updates_own_availability(client, make_user, salon, auth_headers):
    url = f"{API}/service-providers/{salon['provider'].id}/availability"

    response = client.put(url, json=WEEKLY, headers=auth_headers(salon["provider"]))
    assert response.status_code == 200
    assert response.json()["message"] == "Availability updated successfully"
    assert response.json()["data"]["availability"]["schedule"]["saturday"] == [{"start": "10:00", "end": "14:00"}]

    other = make_user(salon["tenant"], role="service_provider")
    assert client.put(url, json=WEEKLY, headers=auth_headers(other)).status_code == 403

    # the owning tenant may manage it too
    assert client.put(url, json=WEEKLY, headers=auth_headers(salon["tenant"])).status_code == 200


def test_availability_windows_are_validated(client, salon, auth_headers):
    response = client.put(
        f"{API}/service-providers/{salon['provider'].id}/availability",
        json={"availability": {"schedule": {"monday": [{"start": "17:00", "end": "09:00"}]}}},
        headers=auth_headers(salon["provider"]),
    )
    assert response.status_code == 400


def test_provider_schedule(client, salon, auth_headers):
    client.put(
        f"{API}/service-providers/{salon['provider'].id}/availability",
        json=WEEKLY,
        headers=auth_headers(salon["provider"]),
    )
    response = client.get(
        f"{API}/service-providers/{salon['provider'].id}/schedule", headers=auth_headers(salon["customer"])
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["provider"]["id"] == salon["provider"].id
    assert data["schedule"]["monday"] == [{"start": "09:00", "end": "17:00"}]
    assert data["timeOff"][0]["reason"] == "Vacation"


def test_deactivate_service_provider(client, salon, auth_headers):
    response = client.delete(f"{API}/service-providers/{salon['provider'].id}", headers=auth_headers(salon["tenant"]))
    assert response.status_code == 200
    assert response.json()["message"] == "Service provider deactivated successfully"


# ============================================================================
# ADMIN BOOTSTRAP
# ============================================================================


def test_create_admin(db):
    admin = create_admin(db, "Root@Example.com", "supersecret")
    assert admin.role == "admin"
    assert admin.tenant_id is None
    assert admin.email == "root@example.com"

    with pytest.raises(ValueError):
        create_admin(db, "root@example.com", "anothersecret")
    with pytest.raises(ValueError):
        create_admin(db, "other@example.com", "short")


def test_bootstrapped_admin_can_log_in(client, db):
    create_admin(db, "root@example.com", "supersecret")
    response = client.post(f"{API}/auth/login", json={"email": "root@example.com", "password": "supersecret"})
    assert response.status_code == 200
    assert response.json()["data"]["role"] == "admin"
