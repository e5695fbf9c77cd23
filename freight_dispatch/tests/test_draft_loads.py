"""
Draft load approval tests.
"""

import pytest

from freight_dispatch.app.models.carrier import Customer
from freight_dispatch.app.services.draft_loads import match_customer_by_name


def draft_payload(**overrides):
    payload = {
        "reference_number": "RC-77881",
        "broker_name": "Echo Global Logistics",
        "rate_amount": 1850,
        "email_import_id": 55,
        "confidence_score": 0.82,
        "provenance": {"source": "email", "message_id": "<abc@mail>"},
        "stops": [
            {"stop_type": "PICKUP", "city": "Chicago", "state": "IL"},
            {"stop_type": "DELIVERY", "city": "Denver", "state": "CO"},
        ],
    }
    payload.update(overrides)
    return payload


def customers(*names):
    return [Customer(id=index, company_name=name) for index, name in enumerate(names, start=1)]


def test_exact_name_wins_over_containment():
    pool = customers("Echo Global Logistics Inc", "Echo Global Logistics")
    assert match_customer_by_name(pool, "echo global logistics").id == 2


def test_containment_match():
    pool = customers("TQL", "Coyote Logistics")
    assert match_customer_by_name(pool, "Coyote Logistics LLC").id == 2


def test_word_overlap_match():
    pool = customers("Landstar Ranger", "Schneider National Carriers")
    assert match_customer_by_name(pool, "National Schneider Freight").id == 2


def test_weak_overlap_not_matched():
    pool = customers("Blue Ridge Freight Systems Group")
    assert match_customer_by_name(pool, "Red Freight") is None


async def test_draft_approval_creates_open_load(client, seed, dispatcher_headers):
    customer = await seed.customer("Echo Global Logistics")

    response = await client.post(
        "/v1/draft-loads/approve",
        json=draft_payload(status="IN_TRANSIT"),
        headers=dispatcher_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["customer_match"] == "name"
    assert data["load"]["status"] == "OPEN"
    assert data["load"]["customer_id"] == customer.id
    assert data["load"]["email_import_id"] == 55
    assert data["load"]["confidence_score"] == pytest.approx(0.82)


async def test_draft_matched_by_mc_number(client, seed, dispatcher_headers):
    customer = await seed.customer("Totally Different Name", mc_number="MC123456")

    response = await client.post(
        "/v1/draft-loads/approve",
        json=draft_payload(broker_name="Unknown Broker", broker_mc_number="MC123456"),
        headers=dispatcher_headers
    )

    assert response.status_code == 201
    assert response.json()["customer_match"] == "mc_number"
    assert response.json()["load"]["customer_id"] == customer.id


async def test_inactive_customers_not_matched(client, seed, dispatcher_headers):
    await seed.customer("Echo Global Logistics", is_active=False)

    response = await client.post("/v1/draft-loads/approve", json=draft_payload(), headers=dispatcher_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_001"


async def test_draft_without_reference_gets_generated_one(client, seed, dispatcher_headers):
    customer = await seed.customer()

    response = await client.post(
        "/v1/draft-loads/approve",
        json=draft_payload(reference_number=None, broker_name=None, customer_id=customer.id),
        headers=dispatcher_headers
    )

    assert response.status_code == 201
    assert response.json()["customer_match"] == "explicit"
    assert response.json()["load"]["reference_number"].startswith("LOAD-")
