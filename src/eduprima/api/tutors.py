"""Tutor status API — the tutor database team's status changes.

Learn: Routes:
- PUT /tutors/status → set one tutor's status
- PUT /tutors/status/bulk → set the same status on several tutors
- GET /tutors/status/{user_id} → current status record

All routes require a principal allowed into the tutor database area.
Authentication and the gate run as dependencies, so they are settled
before the body is validated and before any storage access. Tutors are
addressed by their user id and resolved to the tutor key via
tutor_details; status labels are stored upper-cased.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eduprima.auth.dependencies import require_access
from eduprima.auth.gate import TUTOR_DATABASE_ROUTE
from eduprima.auth.principal import Principal
from eduprima.db.engine import get_db
from eduprima.errors import NotFound, ValidationError
from eduprima.schemas.tutor_status import (
    BulkStatusRead,
    BulkStatusUpdate,
    StatusRead,
    StatusUpdate,
)
from eduprima.services.tutor_status_service import TutorStatusService
from eduprima.tutor_status import storage_value

router = APIRouter(prefix="/tutors")

_tutor_database = require_access(TUTOR_DATABASE_ROUTE)


def _get_service(db: AsyncSession = Depends(get_db)) -> TutorStatusService:
    return TutorStatusService(db)


# ─── Single ──────────────────────────────────────────────


@router.put("/status")
async def update_status(
    body: StatusUpdate,
    principal: Principal = Depends(_tutor_database),
    svc: TutorStatusService = Depends(_get_service),
):
    """Insert or update one tutor's status record."""
    if not body.user_id or not body.status_tutor or not body.status_tutor.strip():
        raise ValidationError("user_id and status_tutor are required")

    tutor_id = await svc.find_tutor_id(body.user_id)
    record = await svc.upsert_status(tutor_id, storage_value(body.status_tutor), principal.id)
    return {"success": True, "data": StatusRead.model_validate(record).model_dump(mode="json")}


# ─── Bulk ────────────────────────────────────────────────


@router.put("/status/bulk")
async def bulk_update_status(
    body: BulkStatusUpdate,
    principal: Principal = Depends(_tutor_database),
    svc: TutorStatusService = Depends(_get_service),
):
    """Set the same status on several tutors in one write."""
    if not body.user_ids or not body.status_tutor or not body.status_tutor.strip():
        raise ValidationError("user_ids (array) and status_tutor are required")

    tutor_ids = await svc.find_tutor_ids(body.user_ids)
    if not tutor_ids:
        raise NotFound("No tutors found for provided user_ids")

    result = await svc.bulk_upsert_status(
        tutor_ids.values(), storage_value(body.status_tutor), principal.id
    )
    data = BulkStatusRead(
        status_tutor=result.status,
        last_status_change_map={
            user_id: result.records[tutor_id].last_status_change
            for user_id, tutor_id in tutor_ids.items()
        },
        updated_at_map={
            user_id: result.records[tutor_id].updated_at
            for user_id, tutor_id in tutor_ids.items()
        },
        missing_user_ids=[u for u in body.user_ids if u not in tutor_ids],
    )
    return {"success": True, "data": data.model_dump(mode="json")}


# ─── Read ────────────────────────────────────────────────


@router.get("/status/{user_id}")
async def get_status(
    user_id: str,
    principal: Principal = Depends(_tutor_database),
    svc: TutorStatusService = Depends(_get_service),
):
    """Current status record for a tutor."""
    tutor_id = await svc.find_tutor_id(user_id)
    record = await svc.get_record(tutor_id)
    if record is None:
        raise NotFound("Tutor has no status record")
    return {"success": True, "data": StatusRead.model_validate(record).model_dump(mode="json")}
