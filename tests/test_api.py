import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from classpoints.core.config import Settings
from classpoints.main import create_app

OWNER = str(uuid.uuid4())
HEADERS = {"X-Owner-Id": OWNER}


@pytest.fixture(name="client")
def client_fixture(database):
    app = create_app(settings=Settings(database_url="sqlite://", log_level="WARNING"), database=database)
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def _student(client: AsyncClient, number: str, points: int = 0) -> dict:
    response = await client.post(
        "/api/v1/students", json={"student_no": number, "display_name": f"Student {number}"}, headers=HEADERS
    )
    assert response.status_code == 201
    student = response.json()
    if points:
        response = await client.post(
            "/api/v1/points/apply",
            json={"student_id": student["student_id"], "points": points, "reason": "Opening balance"},
            headers=HEADERS,
        )
        assert response.status_code == 201
    return student


async def _item(client: AsyncClient, cost: int, stock=None) -> dict:
    response = await client.post(
        "/api/v1/store/items", json={"name": "Homework pass", "cost": cost, "stock": stock}, headers=HEADERS
    )
    assert response.status_code == 201
    return response.json()


async def _ledger(client: AsyncClient, student_id: str) -> dict:
    response = await client.get(f"/api/v1/students/{student_id}/ledger", headers=HEADERS)
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_owner_header_is_required(client: AsyncClient):
    response = await client.get("/api/v1/students")
    assert response.status_code == 401

    response = await client.get("/api/v1/students", headers={"X-Owner-Id": "not-a-uuid"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_behavior_redeem_cancel_scenario(client: AsyncClient):
    student = await _student(client, "2024001", points=50)
    item = await _item(client, cost=25, stock=4)

    response = await client.post(
        "/api/v1/points/apply",
        json={"student_id": student["student_id"], "points": -20, "reason": "behavior"},
        headers=HEADERS,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["student"]["points"] == 30
    assert body["record"]["type"] == "SUBTRACT"
    assert body["record"]["points"] == -20

    response = await client.post(
        "/api/v1/store/redemptions",
        json={"student_id": student["student_id"], "item_id": item["item_id"]},
        headers=HEADERS,
    )
    assert response.status_code == 201
    redemption = response.json()
    assert redemption["status"] == "PENDING"
    assert redemption["cost"] == 25
    assert redemption["student"]["points"] == 5

    response = await client.patch(
        f"/api/v1/store/redemptions/{redemption['redemption_id']}",
        json={"status": "CANCELLED"},
        headers=HEADERS,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"

    ledger = await _ledger(client, student["student_id"])
    assert ledger["points"] == 30
    assert ledger["consistent"] is True

    response = await client.get("/api/v1/store/items", headers=HEADERS)
    assert response.json()[0]["stock"] == 4


@pytest.mark.asyncio
async def test_redeem_errors_carry_kind(client: AsyncClient):
    student = await _student(client, "2024002", points=5)
    item = await _item(client, cost=25)

    response = await client.post(
        "/api/v1/store/redemptions",
        json={"student_id": student["student_id"], "item_id": item["item_id"]},
        headers=HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INSUFFICIENT_POINTS"
    assert (await _ledger(client, student["student_id"]))["points"] == 5


@pytest.mark.asyncio
async def test_fulfilled_redemption_cannot_be_cancelled(client: AsyncClient):
    student = await _student(client, "2024003", points=50)
    item = await _item(client, cost=10)
    response = await client.post(
        "/api/v1/store/redemptions",
        json={"student_id": student["student_id"], "item_id": item["item_id"]},
        headers=HEADERS,
    )
    redemption_id = response.json()["redemption_id"]

    response = await client.patch(
        f"/api/v1/store/redemptions/{redemption_id}", json={"status": "FULFILLED"}, headers=HEADERS
    )
    assert response.status_code == 200
    assert response.json()["fulfilled_at"] is not None

    response = await client.patch(
        f"/api/v1/store/redemptions/{redemption_id}", json={"status": "CANCELLED"}, headers=HEADERS
    )
    assert response.status_code == 400
    assert (await _ledger(client, student["student_id"]))["points"] == 40


@pytest.mark.asyncio
async def test_reset_selected_rejects_foreign_student(client: AsyncClient):
    students = [await _student(client, f"30{index}", points=10) for index in range(5)]
    ids = [student["student_id"] for student in students] + [str(uuid.uuid4())]

    response = await client.post(
        "/api/v1/points/reset",
        json={"cohort": {"mode": "selected", "student_ids": ids}, "target_value": 0},
        headers=HEADERS,
    )

    assert response.status_code == 400
    for student in students:
        assert (await _ledger(client, student["student_id"]))["points"] == 10


@pytest.mark.asyncio
async def test_reset_group(client: AsyncClient):
    member = await _student(client, "401", points=12)
    outsider = await _student(client, "402", points=12)
    response = await client.post("/api/v1/groups", json={"name": "Table 1"}, headers=HEADERS)
    assert response.status_code == 201
    group_id = response.json()["group_id"]
    response = await client.post(
        f"/api/v1/groups/{group_id}/members", json={"student_ids": [member["student_id"]]}, headers=HEADERS
    )
    assert response.json()["member_ids"] == [member["student_id"]]

    response = await client.post(
        "/api/v1/points/reset",
        json={"cohort": {"mode": "group", "group_id": group_id}, "target_value": 3, "reason": "Fresh start"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["affected"][0]["old_points"] == 12
    assert (await _ledger(client, member["student_id"])) == {
        "student_id": member["student_id"],
        "points": 3,
        "ledger_balance": 3,
        "consistent": True,
    }
    assert (await _ledger(client, outsider["student_id"]))["points"] == 12


@pytest.mark.asyncio
async def test_reset_unknown_group(client: AsyncClient):
    await _student(client, "501")

    response = await client.post(
        "/api/v1/points/reset",
        json={"cohort": {"mode": "group", "group_id": str(uuid.uuid4())}, "target_value": 0},
        headers=HEADERS,
    )

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_random_call_fallback(client: AsyncClient):
    for index in range(3):
        await _student(client, f"60{index}")

    for _ in range(3):
        response = await client.post("/api/v1/call/random", json={"avoid_hours": 24}, headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["avoid_reset_used"] is False

    response = await client.post("/api/v1/call/random", json={"avoid_hours": 24}, headers=HEADERS)
    assert response.status_code == 200
    assert response.json()["avoid_reset_used"] is True
    assert response.json()["total_available"] == 3

    response = await client.get("/api/v1/call/history", headers=HEADERS)
    assert response.json()["total"] == 4


@pytest.mark.asyncio
async def test_archived_students_are_hidden(client: AsyncClient):
    student = await _student(client, "701", points=8)

    response = await client.post("/api/v1/students/archive", json={"student_ids": [student["student_id"]]}, headers=HEADERS)
    assert response.json() == {"count": 1}

    response = await client.get("/api/v1/points/records", headers=HEADERS)
    assert response.json()["total"] == 0

    response = await client.post(
        "/api/v1/points/apply",
        json={"student_id": student["student_id"], "points": 1, "reason": "late work"},
        headers=HEADERS,
    )
    assert response.status_code == 400

    response = await client.get("/api/v1/leaderboard", headers=HEADERS)
    assert response.json() == []


@pytest.mark.asyncio
async def test_leaderboard_orders_by_points(client: AsyncClient):
    low = await _student(client, "801", points=5)
    high = await _student(client, "802", points=20)

    response = await client.get("/api/v1/leaderboard", headers=HEADERS)

    assert [entry["student_id"] for entry in response.json()] == [high["student_id"], low["student_id"]]
    assert response.json()[0]["points_earned"] == 20


@pytest.mark.asyncio
async def test_lifespan_disposes_database(database, monkeypatch):
    disposed = []
    monkeypatch.setattr(database, "dispose", lambda: disposed.append(True))
    app = create_app(settings=Settings(database_url="sqlite://", log_level="WARNING"), database=database)

    async with app.router.lifespan_context(app):
        assert disposed == []

    assert disposed == [True]


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["name", "cost", "sort_order", "is_active"])
async def test_update_item_rejects_null_required_field(client: AsyncClient, field: str):
    item = await _item(client, cost=10, stock=2)

    response = await client.patch(f"/api/v1/store/items/{item['item_id']}", json={field: None}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "VALIDATION"
    response = await client.get("/api/v1/store/items", headers=HEADERS)
    assert response.json()[0]["name"] == "Homework pass"


@pytest.mark.asyncio
async def test_update_item_allows_unlimited_stock(client: AsyncClient):
    item = await _item(client, cost=10, stock=2)

    response = await client.patch(
        f"/api/v1/store/items/{item['item_id']}", json={"stock": None, "description": None}, headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json()["stock"] is None
