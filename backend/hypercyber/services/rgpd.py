"""Compliance record store: processing register, access requests, breaches.

The three record families share one contract. Every record belongs to
exactly one entity; record-level operations load the record first, then
check the requester's membership in the owning entity.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, ClassVar, Generic, Sequence, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import access
from ..errors import NotFound
from ..models import AccessRequest, Breach, RegisterEntry, utc_now
from ..schemas import AccessRequestRespond
from .common import apply_patch, check_allowed, patch_fields

logger = logging.getLogger(__name__)

ACCESS_REQUEST_STATUSES = ("pending", "in_progress", "completed", "rejected")
BREACH_STATUSES = ("detected", "contained", "investigating", "resolved", "reported")
BREACH_SEVERITIES = ("low", "medium", "high", "critical")

COMPLETED = "completed"

RecordT = TypeVar("RecordT", RegisterEntry, AccessRequest, Breach)


class RecordStore(Generic[RecordT]):
    """Create/list/get/update for one entity-owned record family."""

    model: ClassVar[type]
    not_found_message: ClassVar[str] = "Record not found"
    order_column: ClassVar[str] = "created_at"
    initial_values: ClassVar[dict[str, Any]] = {}

    def __init__(self, session: AsyncSession, strict_statuses: bool = True) -> None:
        self.session = session
        self.strict_statuses = strict_statuses

    # -- hooks ------------------------------------------------------------

    def validate(self, fields: dict[str, Any]) -> None:
        """Reject values outside the closed sets when strict mode is on."""

    def before_update(self, record: RecordT, fields: dict[str, Any], now: datetime) -> None:
        """Adjust lifecycle fields before a patch is applied."""

    def filter_list(self, stmt: Select, filters: dict[str, Any]) -> Select:
        return stmt

    # -- operations -------------------------------------------------------

    async def create(self, entity_id: uuid.UUID, payload: BaseModel, requester: uuid.UUID) -> RecordT:
        await access.require_membership(self.session, requester, entity_id)
        fields = payload.model_dump()
        self.validate(fields)

        now = utc_now()
        record = self.model(
            id=uuid.uuid4(),
            entity_id=entity_id,
            created_at=now,
            updated_at=now,
            **self.initial_values,
            **fields,
        )
        self.session.add(record)
        await self.session.commit()
        logger.info("%s %s created in entity %s", self.model.__name__, record.id, entity_id)
        return record

    async def list_records(
        self,
        requester: uuid.UUID,
        entity_id: uuid.UUID | None = None,
        **filters: Any,
    ) -> Sequence[RecordT]:
        stmt = select(self.model)
        if entity_id is not None:
            await access.require_membership(self.session, requester, entity_id)
            stmt = stmt.where(self.model.entity_id == entity_id)
        else:
            entity_ids = await access.member_entity_ids(self.session, requester)
            if not entity_ids:
                return []
            stmt = stmt.where(self.model.entity_id.in_(entity_ids))

        stmt = self.filter_list(stmt, filters)
        stmt = stmt.order_by(getattr(self.model, self.order_column).desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get(
        self, record_id: uuid.UUID, requester: uuid.UUID, entity_id: uuid.UUID | None = None
    ) -> RecordT:
        """Load a record the requester may see.

        With ``entity_id`` (path-scoped routes) membership is checked before the
        lookup, and a record owned by another entity is reported as missing.
        """

        if entity_id is not None:
            await access.require_membership(self.session, requester, entity_id)
        record = await self.session.get(self.model, record_id)
        if record is None or (entity_id is not None and record.entity_id != entity_id):
            raise NotFound(self.not_found_message)
        await access.require_membership(self.session, requester, record.entity_id)
        return record

    async def update(
        self,
        record_id: uuid.UUID,
        patch: BaseModel,
        requester: uuid.UUID,
        entity_id: uuid.UUID | None = None,
    ) -> RecordT:
        record = await self.get(record_id, requester, entity_id)
        fields = patch_fields(patch)
        self.validate(fields)

        now = utc_now()
        self.before_update(record, fields, now)
        apply_patch(record, fields)
        record.updated_at = now
        await self.session.commit()
        return record


class RegisterStore(RecordStore[RegisterEntry]):
    model = RegisterEntry
    not_found_message = "Entry not found"


class AccessRequestStore(RecordStore[AccessRequest]):
    model = AccessRequest
    not_found_message = "Request not found"
    initial_values = {"status": "pending", "completed_at": None, "response": None}

    def validate(self, fields: dict[str, Any]) -> None:
        if self.strict_statuses and "status" in fields:
            check_allowed("status", fields["status"], ACCESS_REQUEST_STATUSES)

    def before_update(self, record: AccessRequest, fields: dict[str, Any], now: datetime) -> None:
        if fields.get("status") == COMPLETED:
            record.completed_at = now

    def filter_list(self, stmt: Select, filters: dict[str, Any]) -> Select:
        if filters.get("status"):
            stmt = stmt.where(AccessRequest.status == filters["status"])
        return stmt

    async def respond(
        self,
        record_id: uuid.UUID,
        answer: AccessRequestRespond,
        requester: uuid.UUID,
        entity_id: uuid.UUID | None = None,
    ) -> AccessRequest:
        """Move a request to a new status and record the answer given."""

        record = await self.get(record_id, requester, entity_id)
        self.validate({"status": answer.status})

        now = utc_now()
        record.status = answer.status
        record.response = answer.response
        if answer.status == COMPLETED:
            record.completed_at = now
        record.updated_at = now
        await self.session.commit()
        logger.info("Access request %s moved to %s", record.id, record.status)
        return record


class BreachStore(RecordStore[Breach]):
    model = Breach
    not_found_message = "Breach not found"
    order_column = "discovery_date"
    initial_values = {
        "status": "detected",
        "notification_date": None,
        "authority_notified": False,
        "subjects_notified": False,
    }

    def validate(self, fields: dict[str, Any]) -> None:
        if not self.strict_statuses:
            return
        if "status" in fields:
            check_allowed("status", fields["status"], BREACH_STATUSES)
        if "severity" in fields:
            check_allowed("severity", fields["severity"], BREACH_SEVERITIES)
