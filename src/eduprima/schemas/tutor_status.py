"""Pydantic schemas for tutor status updates.

Request fields are optional at the schema level on purpose: a missing
field must come back as the dashboard's 400 envelope with a readable
message, not as FastAPI's 422 validation dump.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from eduprima.tutor_status import STATUS_MAX_LENGTH


class StatusUpdate(BaseModel):
    """Set one tutor's status."""
    user_id: Optional[str] = Field(None, description="Tutor's user UUID")
    status_tutor: Optional[str] = Field(
        None, max_length=STATUS_MAX_LENGTH, description="New status label"
    )


class BulkStatusUpdate(BaseModel):
    """Set the same status on several tutors."""
    user_ids: Optional[list[str]] = Field(None, description="Tutors' user UUIDs")
    status_tutor: Optional[str] = Field(
        None, max_length=STATUS_MAX_LENGTH, description="New status label"
    )


class StatusRead(BaseModel):
    status: str
    status_changed_by: str
    last_status_change: datetime
    updated_at: datetime
    created: bool = False

    model_config = {"from_attributes": True}


class BulkStatusRead(BaseModel):
    status_tutor: str
    last_status_change_map: dict[str, datetime]
    updated_at_map: dict[str, datetime]
    missing_user_ids: list[str] = Field(default_factory=list)
