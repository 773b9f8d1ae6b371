"""Tutor status API tests.

Learn: Tests cover:
1. Authentication and the gate run before anything else (401 / 403)
2. Required fields and over-long status labels → 400
3. Unknown tutors, malformed user ids included → 404
4. Create-then-update through PUT /api/tutors/status
5. Bulk updates keyed by user_id, with missing ids reported
"""

import uuid

import pytest
from sqlalchemy import func, select

from eduprima.auth.dependencies import get_current_principal
from eduprima.auth.principal import Principal
from eduprima.db.models import TutorStatus
from eduprima.main import app

from conftest import SUPER_ADMIN, TUTOR_MANAGER, bearer, make_tutor

STATUS_URL = "/api/tutors/status"
BULK_URL = "/api/tutors/status/bulk"


# ═══════════════════════════════════════════════════════════
# Auth and gate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_requires_session(unauthenticated_client):
    r = await unauthenticated_client.put(STATUS_URL, json={})
    assert r.status_code == 401
    assert r.json() == {"success": False, "message": "Unauthorized"}
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_bulk_requires_session(unauthenticated_client):
    r = await unauthenticated_client.put(BULK_URL, json={"user_ids": [], "status_tutor": "x"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_garbage_bearer_is_unauthorized(unauthenticated_client):
    r = await unauthenticated_client.put(
        STATUS_URL,
        json={},
        headers={"Authorization": "Bearer not-a-real-token"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_role_outside_tutor_database_is_forbidden(client, db_session):
    user_id, _ = await make_tutor(db_session)
    app.dependency_overrides[get_current_principal] = lambda: Principal(
        id="u-9", email="tutor@eduprima.id", role="tutor"
    )

    r = await client.put(STATUS_URL, json={"user_id": user_id, "status_tutor": "active"})

    assert r.status_code == 403
    assert r.json()["success"] is False
    assert await db_session.scalar(select(func.count()).select_from(TutorStatus)) == 0


@pytest.mark.asyncio
async def test_manager_can_update_with_real_token(unauthenticated_client, db_session):
    user_id, _ = await make_tutor(db_session)

    r = await unauthenticated_client.put(
        STATUS_URL,
        json={"user_id": user_id, "status_tutor": "active"},
        headers=bearer(TUTOR_MANAGER),
    )

    assert r.status_code == 200
    assert r.json()["data"]["status_changed_by"] == TUTOR_MANAGER.id


# ═══════════════════════════════════════════════════════════
# Validation and lookup
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {},
        {"user_id": str(uuid.uuid4())},
        {"status_tutor": "active"},
        {"user_id": "", "status_tutor": "active"},
        {"user_id": str(uuid.uuid4()), "status_tutor": "   "},
    ],
)
async def test_update_missing_fields(client, body):
    r = await client.put(STATUS_URL, json=body)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "user_id and status_tutor are required"}


@pytest.mark.asyncio
async def test_update_malformed_user_id_is_unknown_tutor(client):
    r = await client.put(STATUS_URL, json={"user_id": "abc", "status_tutor": "active"})
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Tutor not found"}


@pytest.mark.asyncio
async def test_update_status_too_long(client, db_session):
    user_id, _ = await make_tutor(db_session)

    r = await client.put(STATUS_URL, json={"user_id": user_id, "status_tutor": "x" * 51})

    assert r.status_code == 400
    assert r.json()["success"] is False
    assert await db_session.scalar(select(func.count()).select_from(TutorStatus)) == 0


@pytest.mark.asyncio
async def test_update_status_at_column_width(client, db_session):
    user_id, _ = await make_tutor(db_session)
    r = await client.put(STATUS_URL, json={"user_id": user_id, "status_tutor": "x" * 50})
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "X" * 50


@pytest.mark.asyncio
async def test_update_wrong_type_is_400(client):
    r = await client.put(STATUS_URL, json={"user_id": ["a"], "status_tutor": "active"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_unknown_tutor(client):
    r = await client.put(STATUS_URL, json={"user_id": str(uuid.uuid4()), "status_tutor": "active"})
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Tutor not found"}


# ═══════════════════════════════════════════════════════════
# Single update
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_then_update(client, db_session):
    user_id, _ = await make_tutor(db_session)

    r1 = await client.put(STATUS_URL, json={"user_id": user_id, "status_tutor": "active"})
    assert r1.status_code == 200
    first = r1.json()["data"]
    assert r1.json()["success"] is True
    assert first["status"] == "ACTIVE"
    assert first["status_changed_by"] == SUPER_ADMIN.id
    assert first["created"] is True
    assert first["last_status_change"] == first["updated_at"]

    r2 = await client.put(STATUS_URL, json={"user_id": user_id, "status_tutor": " suspended "})
    second = r2.json()["data"]
    assert r2.status_code == 200
    assert second["status"] == "SUSPENDED"
    assert second["created"] is False

    assert await db_session.scalar(select(func.count()).select_from(TutorStatus)) == 1


@pytest.mark.asyncio
async def test_get_status(client, db_session):
    user_id, _ = await make_tutor(db_session)

    r = await client.get(f"{STATUS_URL}/{user_id}")
    assert r.status_code == 404
    assert r.json()["message"] == "Tutor has no status record"

    await client.put(STATUS_URL, json={"user_id": user_id, "status_tutor": "on_trial"})
    r = await client.get(f"{STATUS_URL}/{user_id}")
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "ON_TRIAL"


@pytest.mark.asyncio
async def test_get_status_unknown_tutor(client):
    r = await client.get(f"{STATUS_URL}/{uuid.uuid4()}")
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# Bulk
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_bulk_update(client, db_session):
    user_a, _ = await make_tutor(db_session)
    user_b, _ = await make_tutor(db_session)
    missing = str(uuid.uuid4())
    await client.put(STATUS_URL, json={"user_id": user_a, "status_tutor": "registration"})

    r = await client.put(
        BULK_URL,
        json={"user_ids": [user_a, user_b, missing], "status_tutor": "inactive"},
    )

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["status_tutor"] == "INACTIVE"
    assert set(data["last_status_change_map"]) == {user_a, user_b}
    assert set(data["updated_at_map"]) == {user_a, user_b}
    assert data["missing_user_ids"] == [missing]
    assert await db_session.scalar(select(func.count()).select_from(TutorStatus)) == 2


@pytest.mark.asyncio
async def test_bulk_no_known_tutors(client):
    r = await client.put(
        BULK_URL,
        json={"user_ids": [str(uuid.uuid4())], "status_tutor": "active"},
    )
    assert r.status_code == 404
    assert r.json()["message"] == "No tutors found for provided user_ids"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {},
        {"user_ids": [], "status_tutor": "active"},
        {"user_ids": [str(uuid.uuid4())]},
    ],
)
async def test_bulk_missing_fields(client, body):
    r = await client.put(BULK_URL, json=body)
    assert r.status_code == 400
    assert r.json()["message"] == "user_ids (array) and status_tutor are required"


@pytest.mark.asyncio
async def test_bulk_malformed_ids_reported_missing(client, db_session):
    user_id, _ = await make_tutor(db_session)

    r = await client.put(
        BULK_URL,
        json={"user_ids": [user_id, "not-a-uuid"], "status_tutor": "active"},
    )

    assert r.status_code == 200
    assert r.json()["data"]["missing_user_ids"] == ["not-a-uuid"]


@pytest.mark.asyncio
async def test_bulk_status_too_long(client, db_session):
    user_id, _ = await make_tutor(db_session)
    r = await client.put(BULK_URL, json={"user_ids": [user_id], "status_tutor": "x" * 51})
    assert r.status_code == 400
