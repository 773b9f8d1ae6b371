"""Tutor status options for dashboard dropdowns.

Open route: the options are not sensitive and the add-tutor form loads
them before the session settles.
"""

from fastapi import APIRouter

from eduprima.tutor_status import status_options

router = APIRouter()


@router.get("/tutor-status-types")
async def list_status_types():
    options = status_options()
    return {"success": True, "data": options, "count": len(options)}
