API = "/api/v1"

SERVICE_PAYLOAD = {
    "name": "Deep Tissue Massage",
    "description": "Sixty minutes of firm pressure",
    "category": "wellness",
    "duration": 60,
    "pricing": {"basePrice": 90, "discounts": [{"type": "percentage", "value": 10, "description": "Opening week"}]},
    "tags": ["massage", " relax "],
}


def test_only_tenant_owners_create_services(client, salon, auth_headers):
    for record in (salon["customer"], salon["provider"]):
        response = client.post(f"{API}/services", json=SERVICE_PAYLOAD, headers=auth_headers(record))
        assert response.status_code == 403


def test_create_service(client, salon, auth_headers):
    payload = {**SERVICE_PAYLOAD, "providers": [salon["provider"].id]}
    response = client.post(f"{API}/services", json=payload, headers=auth_headers(salon["tenant"]))
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["tenant"] == salon["tenant"].id
    assert data["finalPrice"] == 81
    assert data["pricing"]["basePrice"] == 90
    assert data["tags"] == ["massage", "relax"]
    assert [p["id"] for p in data["providers"]] == [salon["provider"].id]
    assert data["statistics"]["totalBookings"] == 0
    assert data["bookingSettings"]["allowCancellation"] is True


def test_create_service_validation(client, salon, auth_headers):
    payload = {**SERVICE_PAYLOAD, "duration": 3, "category": "astrology"}
    response = client.post(f"{API}/services", json=payload, headers=auth_headers(salon["tenant"]))
    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"duration", "category"} <= fields


def test_percentage_discount_cannot_exceed_100(client, salon, auth_headers):
    payload = {**SERVICE_PAYLOAD, "pricing": {"basePrice": 10, "discounts": [{"type": "percentage", "value": 150}]}}
    response = client.post(f"{API}/services", json=payload, headers=auth_headers(salon["tenant"]))
    assert response.status_code == 400


def test_create_service_with_foreign_provider(client, make_tenant, make_user, salon, auth_headers):
    outsider = make_user(make_tenant(), role="service_provider")
    payload = {**SERVICE_PAYLOAD, "providers": [outsider.id]}
    response = client.post(f"{API}/services", json=payload, headers=auth_headers(salon["tenant"]))
    assert response.status_code == 400
    assert response.json()["message"] == "One or more providers are invalid"


def test_list_services_filters(client, make_service, salon, auth_headers):
    make_service(salon["tenant"], category="fitness")
    make_service(salon["tenant"], is_active=False)
    headers = auth_headers(salon["customer"])

    assert client.get(f"{API}/services", headers=headers).json()["count"] == 3
    assert client.get(f"{API}/services", params={"category": "fitness"}, headers=headers).json()["count"] == 1
    assert client.get(f"{API}/services", params={"isActive": "false"}, headers=headers).json()["count"] == 1


def test_update_service(client, salon, auth_headers):
    response = client.put(
        f"{API}/services/{salon['service'].id}",
        json={"name": "Signature Cut", "duration": 45},
        headers=auth_headers(salon["tenant"]),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Signature Cut"
    assert data["duration"] == 45
    assert data["finalPrice"] == 50


def test_assign_providers_replaces_the_set(client, make_user, salon, auth_headers):
    second = make_user(salon["tenant"], role="service_provider")
    headers = auth_headers(salon["tenant"])
    url = f"{API}/services/{salon['service'].id}/providers"

    response = client.put(url, json={"providerIds": [second.id, salon["provider"].id]}, headers=headers)
    assert response.status_code == 200
    assert [p["id"] for p in response.json()["data"]["providers"]] == sorted([second.id, salon["provider"].id])

    response = client.put(url, json={"providerIds": [second.id]}, headers=headers)
    assert [p["id"] for p in response.json()["data"]["providers"]] == [second.id]

    response = client.put(url, json={"providerIds": []}, headers=headers)
    assert response.json()["data"]["providers"] == []


def test_assign_non_provider_is_rejected(client, salon, auth_headers):
    response = client.put(
        f"{API}/services/{salon['service'].id}/providers",
        json={"providerIds": [salon["customer"].id]},
        headers=auth_headers(salon["tenant"]),
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "providerIds"


def test_delete_is_a_soft_and_idempotent_deactivation(client, salon, auth_headers):
    headers = auth_headers(salon["tenant"])
    url = f"{API}/services/{salon['service'].id}"

    assert client.delete(url, headers=headers).status_code == 200
    assert client.delete(url, headers=headers).status_code == 200

    response = client.get(url, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["isActive"] is False


def test_get_missing_service(client, salon, auth_headers):
    response = client.get(f"{API}/services/999", headers=auth_headers(salon["tenant"]))
    assert response.status_code == 404
    assert response.json()["message"] == "Service not found"


# ============================================================================
# PROVIDER SELF-SERVICE
# ============================================================================


def test_provider_selects_and_unselects_services(client, make_service, salon, auth_headers):
    extra = make_service(salon["tenant"])
    make_service(salon["tenant"], is_active=False)
    headers = auth_headers(salon["provider"])

    response = client.get(f"{API}/services/available", headers=headers)
    assert [s["id"] for s in response.json()["data"]] == [extra.id]

    response = client.post(f"{API}/services/select", json={"serviceIds": [extra.id]}, headers=headers)
    assert response.status_code == 200
    assert {s["id"] for s in response.json()["data"]} == {extra.id, salon["service"].id}
    assert client.get(f"{API}/services/available", headers=headers).json()["count"] == 0

    # Selecting again does not duplicate the assignment
    response = client.post(f"{API}/services/select", json={"serviceIds": [extra.id]}, headers=headers)
    assert response.json()["count"] == 2

    response = client.post(f"{API}/services/unselect", json={"serviceIds": [salon["service"].id]}, headers=headers)
    assert [s["id"] for s in response.json()["data"]] == [extra.id]


def test_provider_cannot_select_foreign_services(client, make_tenant, make_service, salon, auth_headers):
    foreign = make_service(make_tenant())
    response = client.post(
        f"{API}/services/select", json={"serviceIds": [foreign.id]}, headers=auth_headers(salon["provider"])
    )
    assert response.status_code == 404


def test_select_requires_service_ids(client, salon, auth_headers):
    response = client.post(f"{API}/services/select", json={"serviceIds": []}, headers=auth_headers(salon["provider"]))
    assert response.status_code == 400


def test_assign_provider_to_single_service(client, make_service, salon, auth_headers):
    extra = make_service(salon["tenant"])
    response = client.post(
        f"{API}/services/assign_provider", json={"serviceId": extra.id}, headers=auth_headers(salon["provider"])
    )
    assert response.status_code == 200
    assert [p["id"] for p in response.json()["data"]["providers"]] == [salon["provider"].id]


def test_services_of_a_provider(client, make_service, salon, auth_headers):
    make_service(salon["tenant"])
    response = client.get(f"{API}/services/providers/{salon['provider'].id}", headers=auth_headers(salon["customer"]))
    assert [s["id"] for s in response.json()["data"]] == [salon["service"].id]

    response = client.get(f"{API}/services/providers/{salon['customer'].id}", headers=auth_headers(salon["customer"]))
    assert response.status_code == 404


def test_services_of_a_tenant(client, make_tenant, make_service, salon, auth_headers):
    make_service(salon["tenant"], is_active=False)
    other = make_tenant()

    response = client.get(f"{API}/services/tenant/{salon['tenant'].id}", headers=auth_headers(salon["customer"]))
    assert response.json()["count"] == 1

    response = client.get(f"{API}/services/tenant/{other.id}", headers=auth_headers(salon["customer"]))
    assert response.status_code == 404


# ============================================================================
# AVAILABILITY
# ============================================================================


def test_service_availability_per_provider(client, make_booking, salon, auth_headers):
    make_booking(salon["service"], salon["provider"], salon["customer"])
    url = f"{API}/services/{salon['service'].id}/availability"
    headers = auth_headers(salon["customer"])

    response = client.get(url, params={"date": "2030-01-15"}, headers=headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["date"] == "2030-01-15"
    assert data["service"]["finalPrice"] == 50
    assert data["providers"][0]["provider"]["id"] == salon["provider"].id
    assert data["providers"][0]["availableSlots"] == ["09:00", "11:00"]

    response = client.get(url, headers=headers)
    assert response.json()["data"]["date"] is None
    assert response.json()["data"]["providers"][0]["availableSlots"] == []


def test_service_availability_ignores_inactive_providers(client, db, salon, auth_headers):
    salon["provider"].is_active = False
    db.commit()
    response = client.get(
        f"{API}/services/{salon['service'].id}/availability",
        params={"date": "2030-01-15"},
        headers=auth_headers(salon["tenant"]),
    )
    assert response.json()["data"]["providers"] == []
