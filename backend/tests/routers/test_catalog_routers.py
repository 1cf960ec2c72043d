from datetime import timedelta
from decimal import Decimal
from typing import Any

import httpx
import pytest
from rocket_booking.infrastructure.repositories import SqlAlchemyLaunchRepository
from rocket_booking.models import Launch, LaunchStatus
from rocket_booking.routers import rockets as rockets_router
from rocket_booking.utils.time import utc_now_naive


async def _rocket(client: httpx.AsyncClient, **overrides: Any) -> dict[str, Any]:
    payload = {"name": "Falcon", "range": "orbital", "capacity": 5, **overrides}
    resp = await client.post("/api/rockets", json=payload)
    assert resp.status_code == 201
    return resp.json()


async def _launch(client: httpx.AsyncClient, rocket_id: str, future_date: str, **overrides: Any) -> dict[str, Any]:
    payload = {
        "rocketId": rocket_id,
        "scheduledDate": future_date,
        "price": 250.5,
        "minimumPassengers": 2,
        "status": "active",
        **overrides,
    }
    resp = await client.post("/api/launches", json=payload)
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_health(client: httpx.AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["timestamp"].endswith("+00:00")
    assert resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_rocket_validation_and_pagination(client: httpx.AsyncClient) -> None:
    bad = await client.post("/api/rockets", json={"name": "", "range": "pluto", "capacity": 11})
    assert bad.status_code == 400
    assert [d["field"] for d in bad.json()["details"]] == ["name", "range", "capacity"]

    for i in range(3):
        await _rocket(client, name=f"R{i}", capacity=i + 1)

    page = await client.get("/api/rockets", params={"page": 2, "pageSize": 2})
    body = page.json()
    assert body["total"] == 3
    assert body["pageSize"] == 2
    assert body["hasMore"] is False
    assert len(body["data"]) == 1

    filtered = await client.get("/api/rockets", params={"minCapacity": 2, "range": "orbital"})
    assert filtered.json()["total"] == 2

    too_big = await client.get("/api/rockets", params={"pageSize": 101})
    assert too_big.status_code == 400


@pytest.mark.asyncio
async def test_rocket_capacity_reduction_and_delete(client: httpx.AsyncClient, future_date: str) -> None:
    rocket = await _rocket(client)
    launch = await _launch(client, rocket["id"], future_date, minimumPassengers=1)
    await client.post("/api/customers", json={"name": "Alice", "email": "a@x.com", "phone": "5550100"})
    await client.post("/api/bookings", json={"launchId": launch["id"], "customerEmail": "a@x.com", "seatCount": 3})

    shrink = await client.put(f"/api/rockets/{rocket['id']}", json={"capacity": 2})
    assert shrink.status_code == 400
    assert shrink.json()["details"][0]["field"] == "capacity"

    ok = await client.put(f"/api/rockets/{rocket['id']}", json={"capacity": 3, "name": "Falcon Heavy"})
    assert ok.status_code == 200
    assert ok.json()["capacity"] == 3

    refused = await client.delete(f"/api/rockets/{rocket['id']}")
    assert refused.status_code == 400

    assert (await client.get("/api/rockets/missing")).status_code == 404


@pytest.mark.asyncio
async def test_launch_is_enriched(client: httpx.AsyncClient, future_date: str) -> None:
    rocket = await _rocket(client, name="Atlas", capacity=4)
    launch = await _launch(client, rocket["id"], future_date)

    assert launch["rocketName"] == "Atlas"
    assert launch["price"] == 250.5
    assert launch["totalSeats"] == 4
    assert launch["bookedPassengers"] == 0
    assert launch["availableSeats"] == 4
    assert launch["scheduledDate"].endswith("+00:00")

    listed = await client.get("/api/launches")
    assert [item["id"] for item in listed.json()] == [launch["id"]]


@pytest.mark.asyncio
async def test_launch_validation_and_update(client: httpx.AsyncClient, future_date: str) -> None:
    rocket = await _rocket(client, capacity=3)

    unknown = await client.post(
        "/api/launches",
        json={"rocketId": "missing", "scheduledDate": future_date, "price": 10, "minimumPassengers": 1},
    )
    assert unknown.status_code == 400
    assert unknown.json()["details"][0]["field"] == "rocketId"

    crowded = await client.post(
        "/api/launches",
        json={"rocketId": rocket["id"], "scheduledDate": future_date, "price": 10, "minimumPassengers": 4},
    )
    assert crowded.status_code == 400

    launch = await _launch(client, rocket["id"], future_date)
    updated = await client.put(f"/api/launches/{launch['id']}", json={"price": 300, "status": "cancelled"})
    assert updated.status_code == 200
    assert updated.json()["status"] == "cancelled"
    assert updated.json()["price"] == 300.0

    moved = await client.put(f"/api/launches/{launch['id']}", json={"rocketId": "other"})
    assert moved.status_code == 400

    deleted = await client.delete(f"/api/launches/{launch['id']}")
    assert deleted.status_code == 204
    assert (await client.get(f"/api/launches/{launch['id']}")).status_code == 404
    assert (await client.get(f"/api/launches/{launch['id']}/availability")).status_code == 404


@pytest.mark.asyncio
async def test_customer_lifecycle(client: httpx.AsyncClient) -> None:
    created = await client.post(
        "/api/customers", json={"name": "Alice", "email": " Alice@Example.com ", "phone": "+1 555 0100"}
    )
    assert created.status_code == 201
    customer = created.json()
    assert customer["email"] == "alice@example.com"

    duplicate = await client.post(
        "/api/customers", json={"name": "Other", "email": "ALICE@example.com", "phone": "5550101"}
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["details"] == [{"field": "email", "message": "Email is already registered"}]

    by_email = await client.get("/api/customers/email/ALICE@EXAMPLE.COM")
    assert by_email.json()["id"] == customer["id"]

    listed = await client.get("/api/customers", params={"name": "ali"})
    assert listed.json()["total"] == 1

    immutable = await client.put(f"/api/customers/{customer['id']}", json={"email": "new@example.com"})
    assert immutable.status_code == 400

    renamed = await client.put(f"/api/customers/{customer['id']}", json={"name": "Alicia"})
    assert renamed.json()["name"] == "Alicia"

    assert (await client.delete(f"/api/customers/{customer['id']}")).status_code == 204
    assert (await client.get(f"/api/customers/{customer['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_customer_with_active_booking_cannot_be_deleted(client: httpx.AsyncClient, future_date: str) -> None:
    rocket = await _rocket(client)
    launch = await _launch(client, rocket["id"], future_date)
    customer = (
        await client.post("/api/customers", json={"name": "Alice", "email": "a@x.com", "phone": "5550100"})
    ).json()
    await client.post("/api/bookings", json={"launchId": launch["id"], "customerEmail": "a@x.com", "seatCount": 1})

    refused = await client.delete(f"/api/customers/{customer['id']}")
    assert refused.status_code == 400
    assert refused.json() == {"error": "Customer has active bookings and cannot be deleted"}


@pytest.mark.asyncio
async def test_capacity_update_locks_launches_added_mid_request(
    client: httpx.AsyncClient,
    future_date: str,
    session_factory: Any,
    launch_locks: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    rocket = await _rocket(client, capacity=6)
    first = await _launch(client, rocket["id"], future_date, minimumPassengers=1)
    added: list[str] = []
    held: list[tuple[bool, bool]] = []

    class LaunchRepoWithLateArrival(SqlAlchemyLaunchRepository):
        async def list_by_rocket(self, rocket_id: str) -> list[Launch]:
            launches = await super().list_by_rocket(rocket_id)
            if not added:
                async with session_factory() as other:
                    async with other.begin():
                        late = await SqlAlchemyLaunchRepository(other).create(
                            rocket_id=rocket_id,
                            scheduled_date=utc_now_naive() + timedelta(days=3),
                            price=Decimal("10"),
                            minimum_passengers=1,
                            status=LaunchStatus.ACTIVE,
                        )
                added.append(late.id)
            return launches

    original_update = rockets_router.rocket_usecase.update_rocket

    async def recording_update(*args: Any, **kwargs: Any) -> Any:
        held.append((launch_locks.is_held(first["id"]), launch_locks.is_held(added[0])))
        return await original_update(*args, **kwargs)

    monkeypatch.setattr(rockets_router, "SqlAlchemyLaunchRepository", LaunchRepoWithLateArrival)
    monkeypatch.setattr(rockets_router.rocket_usecase, "update_rocket", recording_update)

    resp = await client.put(f"/api/rockets/{rocket['id']}", json={"capacity": 4})

    assert resp.status_code == 200
    assert held == [(True, True)]
    assert len(launch_locks) == 0
