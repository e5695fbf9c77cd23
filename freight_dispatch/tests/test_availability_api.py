"""
Integration tests for the conflict and affinity lookups.
"""

from freight_dispatch.app.models.load_enums import LoadStatus
from freight_dispatch.tests.helpers import at


async def test_conflicts_endpoint(client, seed, dispatcher_headers):
    customer = await seed.customer()
    driver = await seed.driver()
    busy = await seed.load(customer, at(2, 12), at(2, 18), reference_number="L-2", driver_id=driver.id)

    response = await client.get(
        "/v1/conflicts",
        params={
            "resource_type": "DRIVER",
            "resource_id": driver.id,
            "range_start": "2026-03-02T08:00:00Z",
            "range_end": "2026-03-03T17:00:00Z",
        },
        headers=dispatcher_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["has_conflicts"] is True
    assert data["conflicts"][0]["id"] == busy.id
    assert data["conflicts"][0]["matched_as"] == ["driver_id"]


async def test_conflicts_endpoint_rejects_inverted_range(client, dispatcher_headers):
    response = await client.get(
        "/v1/conflicts",
        params={
            "resource_type": "TRAILER",
            "resource_id": 1,
            "range_start": "2026-03-05T00:00:00Z",
            "range_end": "2026-03-04T00:00:00Z",
        },
        headers=dispatcher_headers
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_001"


async def test_driver_availability(client, seed, dispatcher_headers):
    customer = await seed.customer()
    driver = await seed.driver()
    await seed.load(customer, at(1), at(2), status=LoadStatus.COMPLETED, driver_id=driver.id,
                    loaded_miles=300, reference_number="DONE")

    response = await client.get(
        f"/v1/drivers/{driver.id}/availability",
        params={"pickup": "2026-03-05T00:00:00Z", "delivery": "2026-03-06T00:00:00Z"},
        headers=dispatcher_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["available"] is True
    assert data["stats"] == {"active_loads": 0, "completed_loads": 1, "total_miles": 300}


async def test_driver_affinity(client, seed, dispatcher_headers):
    driver = await seed.driver()
    partner = await seed.driver("Team Partner")
    truck = await seed.tractor(driver=driver, driver2=partner)

    response = await client.get(f"/v1/drivers/{driver.id}/affinity", headers=dispatcher_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["truck"]["id"] == truck.id
    assert data["truck"]["type"] == "TRACTOR"
    assert data["team_driver"]["id"] == partner.id
    assert data["suggested_trailer"] is None


async def test_truck_affinity(client, seed, dispatcher_headers):
    driver = await seed.driver()
    truck = await seed.tractor(driver=driver)
    trailer = await seed.trailer()

    response = await client.get(f"/v1/vehicles/{truck.id}/affinity", headers=dispatcher_headers)
    assert response.status_code == 200
    assert response.json()["driver"]["id"] == driver.id
    assert response.json()["team_driver"] is None

    response = await client.get(f"/v1/vehicles/{trailer.id}/affinity", headers=dispatcher_headers)
    assert response.status_code == 422


async def test_affinity_for_unknown_driver(client, dispatcher_headers):
    response = await client.get("/v1/drivers/999/affinity", headers=dispatcher_headers)
    assert response.status_code == 404
