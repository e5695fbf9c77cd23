"""
Dispatch board tests.
"""

from freight_dispatch.app.models.load_enums import LoadStatus
from freight_dispatch.tests.helpers import at


async def test_board_groups_by_status_in_lifecycle_order(client, seed, dispatcher_headers):
    customer = await seed.customer()
    await seed.load(customer, at(5), at(6), reference_number="A", status=LoadStatus.OPEN)
    await seed.load(customer, at(5), at(6), reference_number="B", status=LoadStatus.IN_TRANSIT)
    await seed.load(customer, at(5), at(6), reference_number="C", status=LoadStatus.IN_TRANSIT)
    await seed.load(customer, at(5), at(6), reference_number="D", status=LoadStatus.CANCELLED)

    response = await client.get("/v1/dispatch-board", headers=dispatcher_headers)

    assert response.status_code == 200
    data = response.json()
    assert [column["status"] for column in data["columns"]] == [
        "OPEN", "SCHEDULED", "IN_PICKUP_YARD", "IN_TRANSIT", "COMPLETED",
    ]
    counts = {column["status"]: column["count"] for column in data["columns"]}
    assert counts == {"OPEN": 1, "SCHEDULED": 0, "IN_PICKUP_YARD": 0, "IN_TRANSIT": 2, "COMPLETED": 0}
    assert data["total"] == 3


async def test_board_cards_carry_names_and_route(client, seed, dispatcher_headers):
    customer = await seed.customer("Acme Logistics")
    driver = await seed.driver("Maria Lopez")
    truck = await seed.tractor("T-900")
    await seed.load(customer, at(5, 8), at(6, 17), driver_id=driver.id, truck_id=truck.id)

    response = await client.get("/v1/dispatch-board?status=OPEN", headers=dispatcher_headers)

    card = response.json()["columns"][0]["loads"][0]
    assert card["customer_name"] == "Acme Logistics"
    assert card["driver_name"] == "Maria Lopez"
    assert card["truck_unit"] == "T-900"
    assert card["pickup_city"] == "Dallas"
    assert card["delivery_city"] == "Houston"
    assert "SCHEDULED" in card["available_transitions"]


async def test_board_search_matches_driver_name_and_city(client, seed, dispatcher_headers):
    customer = await seed.customer()
    driver = await seed.driver("Maria Lopez")
    await seed.load(customer, at(5), at(6), reference_number="X-1", driver_id=driver.id)
    await seed.load(customer, at(5), at(6), reference_number="X-2")

    response = await client.get("/v1/dispatch-board?search=lopez", headers=dispatcher_headers)
    assert response.json()["total"] == 1

    response = await client.get("/v1/dispatch-board?search=houston", headers=dispatcher_headers)
    assert response.json()["total"] == 2


async def test_board_filters(client, seed, dispatcher_headers):
    customer = await seed.customer()
    other_customer = await seed.customer("Other Shipper")
    driver = await seed.driver()
    await seed.load(customer, at(5), at(6), reference_number="TEAM", driver2_id=driver.id)
    await seed.load(other_customer, at(5), at(6), reference_number="OTHER")
    await seed.load(customer, at(1), at(2), reference_number="BILLED",
                    status=LoadStatus.COMPLETED, invoice_id=7)
    await seed.load(customer, at(1), at(2), reference_number="UNBILLED", status=LoadStatus.COMPLETED)

    response = await client.get(f"/v1/dispatch-board?driver_id={driver.id}", headers=dispatcher_headers)
    assert response.json()["total"] == 1

    response = await client.get(f"/v1/dispatch-board?customer_id={other_customer.id}", headers=dispatcher_headers)
    assert response.json()["total"] == 1

    response = await client.get(
        "/v1/dispatch-board?status=COMPLETED&not_invoiced=true", headers=dispatcher_headers
    )
    cards = response.json()["columns"][0]["loads"]
    assert [card["reference_number"] for card in cards] == ["UNBILLED"]
