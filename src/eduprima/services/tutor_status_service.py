"""Tutor status service — reconcile the per-tutor management record.

Learn: A status change is "insert if the tutor has no tutor_status row
yet, otherwise update it", stamped with who changed it and when. Doing
that as SELECT-then-INSERT/UPDATE races: two requests for the same tutor
can both see "no row" and one insert fails, or one update silently
loses. So the write is a single INSERT ... ON CONFLICT (tutor_id) DO
UPDATE ... RETURNING; the preceding lookup only tells us which branch
the write took, for the response and the log.

Both timestamps come from one clock read so last_status_change and
updated_at are always identical for a given change.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eduprima.db.models import TutorDetail, TutorStatus, utcnow
from eduprima.errors import NotFound, StorageError, ValidationError
from eduprima.tutor_status import STATUS_MAX_LENGTH

logger = structlog.get_logger()

ACTOR_MAX_LENGTH = TutorStatus.__table__.c.status_changed_by.type.length


@dataclass(frozen=True)
class StatusRecord:
    """The persisted subset of a management record."""

    tutor_id: uuid.UUID
    status: str
    status_changed_by: str
    last_status_change: datetime
    updated_at: datetime
    created: bool = False


@dataclass(frozen=True)
class BulkStatusResult:
    status: str
    records: dict[uuid.UUID, StatusRecord] = field(default_factory=dict)

    @property
    def inserted(self) -> int:
        return sum(1 for r in self.records.values() if r.created)


def _parse_key(value, what: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if value is None or not str(value).strip():
        raise ValidationError(f"{what} is required")
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        raise ValidationError(f"{what} is not a valid id: {value}")


def _as_uuid(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None


def _require_text(value: Optional[str], what: str, max_length: int) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{what} is required")
    text = str(value).strip()
    if len(text) > max_length:
        raise ValidationError(f"{what} must be at most {max_length} characters")
    return text


class TutorStatusService:
    """Reads and writes tutor_status rows."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    # ─── Lookups ──────────────────────────────────────────

    async def get_record(self, tutor_id) -> Optional[TutorStatus]:
        key = _parse_key(tutor_id, "tutor_id")
        try:
            return await self.db.scalar(
                select(TutorStatus)
                .where(TutorStatus.tutor_id == key)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    async def find_tutor_ids(self, user_ids: Iterable[str]) -> dict[str, uuid.UUID]:
        """Map user ids to tutor_details ids.

        Unknown users are left out, and so are ids that can't name a user
        at all (not a UUID): both are "no such tutor" to the caller.
        """
        parsed_ids = {str(u): _as_uuid(u) for u in user_ids}
        wanted = {raw: key for raw, key in parsed_ids.items() if key is not None}
        if not wanted:
            return {}
        try:
            rows = await self.db.execute(
                select(TutorDetail.user_id, TutorDetail.id).where(
                    TutorDetail.user_id.in_(list(wanted.values()))
                )
            )
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e
        by_user = {user_id: tutor_id for user_id, tutor_id in rows.all()}
        return {
            raw: by_user[parsed] for raw, parsed in wanted.items() if parsed in by_user
        }

    async def find_tutor_id(self, user_id: str) -> uuid.UUID:
        found = await self.find_tutor_ids([user_id])
        if not found:
            raise NotFound("Tutor not found")
        return next(iter(found.values()))

    # ─── Writes ───────────────────────────────────────────

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise StorageError(f"Atomic upsert not supported on {dialect}")
        return insert

    async def _existing_keys(self, keys: list[uuid.UUID]) -> set[uuid.UUID]:
        try:
            rows = await self.db.scalars(
                select(TutorStatus.tutor_id).where(TutorStatus.tutor_id.in_(keys))
            )
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e
        return set(rows.all())

    async def _write(
        self, keys: list[uuid.UUID], status: str, actor_id: str
    ) -> dict[uuid.UUID, StatusRecord]:
        existing = await self._existing_keys(keys)
        now = self.clock()

        insert = self._insert()
        stmt = insert(TutorStatus).values([
            {
                "tutor_id": key,
                "status": status,
                "status_changed_by": actor_id,
                "last_status_change": now,
                "created_at": now,
                "updated_at": now,
            }
            for key in keys
        ])
        stmt = stmt.on_conflict_do_update(
            index_elements=["tutor_id"],
            set_={
                "status": stmt.excluded.status,
                "status_changed_by": stmt.excluded.status_changed_by,
                "last_status_change": stmt.excluded.last_status_change,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(
            TutorStatus.tutor_id,
            TutorStatus.status,
            TutorStatus.status_changed_by,
            TutorStatus.last_status_change,
            TutorStatus.updated_at,
        )

        try:
            result = await self.db.execute(stmt)
            rows = result.all()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("tutor_status.write_failed", tutors=len(keys), error=str(e))
            raise StorageError(str(e)) from e

        return {
            row.tutor_id: StatusRecord(
                tutor_id=row.tutor_id,
                status=row.status,
                status_changed_by=row.status_changed_by,
                last_status_change=row.last_status_change,
                updated_at=row.updated_at,
                created=row.tutor_id not in existing,
            )
            for row in rows
        }

    async def upsert_status(self, entity_key, new_status: str, actor_id: str) -> StatusRecord:
        """Insert or update the status record for one tutor.

        Raises ValidationError for a missing key/status/actor (before any
        store access) and StorageError when the store fails.
        """
        key = _parse_key(entity_key, "tutor_id")
        status = _require_text(new_status, "status", STATUS_MAX_LENGTH)
        actor = _require_text(actor_id, "actor_id", ACTOR_MAX_LENGTH)

        records = await self._write([key], status, actor)
        record = records[key]
        logger.info(
            "tutor_status.changed",
            tutor_id=str(key),
            status=status,
            changed_by=actor,
            created=record.created,
        )
        return record

    async def bulk_upsert_status(
        self, entity_keys: Iterable, new_status: str, actor_id: str
    ) -> BulkStatusResult:
        """Set the same status on many tutors in one atomic statement."""
        keys: list[uuid.UUID] = []
        for raw in entity_keys or []:
            key = _parse_key(raw, "tutor_id")
            if key not in keys:
                keys.append(key)
        if not keys:
            raise ValidationError("at least one tutor_id is required")
        status = _require_text(new_status, "status", STATUS_MAX_LENGTH)
        actor = _require_text(actor_id, "actor_id", ACTOR_MAX_LENGTH)

        records = await self._write(keys, status, actor)
        result = BulkStatusResult(status=status, records=records)
        logger.info(
            "tutor_status.bulk_changed",
            tutors=len(keys),
            inserted=result.inserted,
            status=status,
            changed_by=actor,
        )
        return result
