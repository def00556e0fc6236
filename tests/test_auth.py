from datetime import timedelta

from conftest import PASSWORD

from ams.models import Tenant, User
from ams.security_utils import create_access_token

API = "/api/v1"

TENANT_DATA = {
    "name": "Bright Smiles",
    "subdomain": "bright-smiles",
    "business": {"type": "clinic", "description": "Family dentistry"},
    "settings": {"timeZone": "Europe/London", "currency": "GBP"},
}


def _register(client, **overrides):
    payload = {
        "firstName": "Alex",
        "lastName": "Doe",
        "email": "alex@example.com",
        "password": PASSWORD,
    }
    payload.update(overrides)
    return client.post(f"{API}/auth/register", json=payload)


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


# ============================================================================
# REGISTRATION
# ============================================================================


def test_register_tenant_returns_business_without_token(client, db):
    response = _register(client, role="tenant", tenantData=TENANT_DATA)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert "token" not in body
    assert body["data"]["subdomain"] == "bright-smiles"
    assert body["data"]["business"]["type"] == "clinic"
    assert body["data"]["subscription"]["plan"] == "basic"
    assert db.query(Tenant).count() == 1


def test_register_tenant_requires_tenant_data(client):
    response = _register(client, role="tenant")
    assert response.status_code == 400


def test_register_tenant_with_taken_subdomain(client, make_tenant):
    make_tenant(subdomain="bright-smiles")
    response = _register(client, role="tenant", tenantData=TENANT_DATA)
    assert response.status_code == 400
    assert response.json()["message"] == "Subdomain is already taken. Please choose another."


def test_register_customer_by_subdomain(client, make_tenant):
    tenant = make_tenant(subdomain="corner-spa")
    response = _register(client, subdomain="Corner-Spa")
    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["data"]["role"] == "customer"
    assert body["data"]["tenantId"] == tenant.id


def test_register_provider_by_tenant_id(client, make_tenant):
    tenant = make_tenant()
    response = _register(
        client,
        role="service_provider",
        tenantId=tenant.id,
        profile={"bio": "Ten years of colouring", "specializations": ["Coloring"], "experience": 10},
    )
    assert response.status_code == 201
    profile = response.json()["data"]["profile"]
    assert profile["specializations"] == ["Coloring"]
    assert profile["experience"] == 10


def test_register_admin_is_refused(client, make_tenant):
    tenant = make_tenant()
    response = _register(client, role="admin", tenantId=tenant.id)
    assert response.status_code == 400
    assert response.json()["message"] == "Administrators cannot self-register"


def test_register_requires_tenant_reference(client):
    response = _register(client)
    assert response.status_code == 400


def test_register_unknown_tenant(client):
    response = _register(client, subdomain="nowhere")
    assert response.status_code == 404
    assert response.json()["message"] == "Tenant not found"


def test_register_into_inactive_tenant(client, make_tenant):
    tenant = make_tenant(is_active=False)
    response = _register(client, tenantId=tenant.id)
    assert response.status_code == 400


def test_register_duplicate_email_across_principal_kinds(client, make_tenant, make_user):
    tenant = make_tenant()
    make_user(tenant, email="taken@example.com")

    response = _register(client, email="taken@example.com", tenantId=tenant.id)
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists with this email"

    response = _register(client, email=tenant.email, tenantId=tenant.id)
    assert response.status_code == 400


def test_register_invalid_email(client, make_tenant):
    tenant = make_tenant()
    response = _register(client, email="not-an-email", tenantId=tenant.id)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "email"


# ============================================================================
# LOGIN & TOKENS
# ============================================================================


def test_login_tenant_owner(client, make_tenant):
    tenant = make_tenant()
    response = client.post(f"{API}/auth/login", json={"email": tenant.email, "password": PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["data"]["role"] == "tenant"
    assert body["data"]["tenantId"] == tenant.id

    response = client.get(f"{API}/auth/me", headers=_bearer(body["token"]))
    assert response.status_code == 200
    assert response.json()["data"]["tenant"]["subdomain"] == tenant.subdomain


def test_login_records_last_login(client, db, make_tenant, make_user):
    user = make_user(make_tenant())
    client.post(f"{API}/auth/login", json={"email": user.email.upper(), "password": PASSWORD})
    db.expire_all()
    assert db.get(User, user.id).last_login is not None


def test_login_wrong_password(client, make_tenant, make_user):
    user = make_user(make_tenant())
    response = client.post(f"{API}/auth/login", json={"email": user.email, "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


def test_login_unknown_email(client):
    response = client.post(f"{API}/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert response.status_code == 401


def test_login_deactivated_user(client, make_tenant, make_user):
    user = make_user(make_tenant(), is_active=False)
    response = client.post(f"{API}/auth/login", json={"email": user.email, "password": PASSWORD})
    assert response.status_code == 401
    assert response.json()["message"] == "User account is deactivated"


def test_me_requires_token(client):
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_me_rejects_garbage_token(client):
    response = client.get(f"{API}/auth/me", headers=_bearer("not.a.jwt"))
    assert response.status_code == 401


def test_me_rejects_expired_token(client, make_tenant, make_user):
    user = make_user(make_tenant())
    token = create_access_token(user.id, user.role, user.tenant_id, expires_delta=timedelta(seconds=-5))
    response = client.get(f"{API}/auth/me", headers=_bearer(token))
    assert response.status_code == 401
    assert response.json()["message"] == "Token expired"


def test_tenant_claim_must_match_principal(client, make_tenant, make_user):
    user = make_user(make_tenant())
    other = make_tenant()
    token = create_access_token(user.id, user.role, other.id)
    response = client.get(f"{API}/auth/me", headers=_bearer(token))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token claims"


def test_role_claim_selects_the_principal_store(client, make_tenant, make_user):
    user = make_user(make_tenant())
    token = create_access_token(user.id, "service_provider", user.tenant_id)
    response = client.get(f"{API}/auth/me", headers=_bearer(token))
    assert response.status_code == 401


def test_unknown_role_claim(client, make_tenant, make_user):
    user = make_user(make_tenant())
    token = create_access_token(user.id, "superuser", user.tenant_id)
    response = client.get(f"{API}/auth/me", headers=_bearer(token))
    assert response.status_code == 401


def test_deactivated_principal_with_valid_token(client, db, make_tenant, make_user, auth_headers):
    user = make_user(make_tenant())
    headers = auth_headers(user)
    user.is_active = False
    db.commit()

    response = client.get(f"{API}/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "User account is deactivated"


def test_admin_token_has_no_tenant(client, make_user, auth_headers):
    admin = make_user(None, role="admin")
    response = client.get(f"{API}/auth/me", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["role"] == "admin"
    assert response.json()["data"]["tenantId"] is None


def test_logout(client, make_tenant, make_user, auth_headers):
    user = make_user(make_tenant())
    assert client.post(f"{API}/auth/logout", headers=auth_headers(user)).status_code == 200
    assert client.post(f"{API}/auth/logout").status_code == 401


# ============================================================================
# ACCOUNT
# ============================================================================


def test_update_profile(client, make_tenant, make_user, auth_headers):
    user = make_user(make_tenant(), role="service_provider")
    response = client.put(
        f"{API}/auth/profile",
        json={"firstName": "Jordan", "profile": {"bio": "Barber & stylist", "specializations": ["Fades"]}},
        headers=auth_headers(user),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["firstName"] == "Jordan"
    assert data["profile"]["bio"] == "Barber &amp; stylist"
    assert data["profile"]["specializations"] == ["Fades"]


def test_update_tenant_owner_profile(client, make_tenant, auth_headers):
    tenant = make_tenant()
    response = client.put(f"{API}/auth/profile", json={"lastName": "Owner-Smith"}, headers=auth_headers(tenant))
    assert response.status_code == 200
    assert response.json()["data"]["lastName"] == "Owner-Smith"


def test_update_password(client, make_tenant, make_user, auth_headers):
    user = make_user(make_tenant())
    headers = auth_headers(user)

    response = client.put(
        f"{API}/auth/password", json={"currentPassword": "wrong", "newPassword": "newsecret"}, headers=headers
    )
    assert response.status_code == 401

    response = client.put(
        f"{API}/auth/password", json={"currentPassword": PASSWORD, "newPassword": "newsecret"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["token"]

    response = client.post(f"{API}/auth/login", json={"email": user.email, "password": "newsecret"})
    assert response.status_code == 200


def test_forgot_and_reset_password(client, make_tenant, make_user):
    user = make_user(make_tenant())

    response = client.post(f"{API}/auth/forgot-password", json={"email": user.email})
    assert response.status_code == 200
    token = response.json()["resetToken"]
    assert token

    response = client.put(f"{API}/auth/reset-password/{token}", json={"password": "brandnew"})
    assert response.status_code == 200

    response = client.post(f"{API}/auth/login", json={"email": user.email, "password": "brandnew"})
    assert response.status_code == 200

    # A reset token only works once
    response = client.put(f"{API}/auth/reset-password/{token}", json={"password": "another1"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired reset token"


def test_only_the_latest_reset_token_is_valid(client, make_tenant):
    tenant = make_tenant()
    first = client.post(f"{API}/auth/forgot-password", json={"email": tenant.email}).json()["resetToken"]
    second = client.post(f"{API}/auth/forgot-password", json={"email": tenant.email}).json()["resetToken"]
    assert first != second

    assert client.put(f"{API}/auth/reset-password/{first}", json={"password": "brandnew"}).status_code == 400
    assert client.put(f"{API}/auth/reset-password/{second}", json={"password": "brandnew"}).status_code == 200


def test_forgot_password_unknown_email(client):
    response = client.post(f"{API}/auth/forgot-password", json={"email": "ghost@example.com"})
    assert response.status_code == 404


def test_reset_password_with_tampered_token(client):
    response = client.put(f"{API}/auth/reset-password/forged-token", json={"password": "brandnew"})
    assert response.status_code == 400


# ============================================================================
# APPLICATION SURFACE
# ============================================================================


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_unknown_route(client):
    response = client.get(f"{API}/nope")
    assert response.status_code == 404
    assert response.json()["message"] == f"Route {API}/nope not found"


def test_security_headers_on_api_responses(client):
    response = client.get(f"{API}/auth/me")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Cache-Control"] == "no-store"
    assert "Strict-Transport-Security" not in response.headers
