"""Entity & membership store."""
from __future__ import annotations

import logging
import uuid
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .. import access
from ..errors import NotFound
from ..models import ADMIN_ROLE, Entity, Membership, User, utc_now
from ..schemas import EntityCreate, EntityMember, EntityUpdate
from .common import apply_patch, patch_fields

logger = logging.getLogger(__name__)


class EntityStore:
    """Organizations and who belongs to them."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_entities(self, requester: uuid.UUID) -> Sequence[Entity]:
        result = await self.session.execute(
            select(Entity)
            .join(Membership, Membership.entity_id == Entity.id)
            .where(Membership.user_id == requester)
            .order_by(Entity.name)
        )
        return list(result.scalars().all())

    async def create_entity(self, payload: EntityCreate, creator: uuid.UUID) -> Entity:
        """Insert the entity and the creator's admin membership atomically."""

        now = utc_now()
        entity = Entity(
            id=uuid.uuid4(),
            name=payload.name,
            description=payload.description,
            created_at=now,
            updated_at=now,
        )
        membership = Membership(
            id=uuid.uuid4(),
            user_id=creator,
            entity_id=entity.id,
            role=ADMIN_ROLE,
            created_at=now,
        )
        try:
            self.session.add(entity)
            await self.session.flush()
            self.session.add(membership)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        logger.info("Entity %s created by user %s", entity.id, creator)
        return entity

    async def get_entity(self, entity_id: uuid.UUID, requester: uuid.UUID) -> Entity:
        # Non-members get Forbidden even for unknown ids.
        await access.require_membership(self.session, requester, entity_id)
        entity = await self.session.get(Entity, entity_id)
        if entity is None:
            raise NotFound("Entity not found")
        return entity

    async def update_entity(
        self, entity_id: uuid.UUID, patch: EntityUpdate, requester: uuid.UUID
    ) -> Entity:
        await access.require_admin(self.session, requester, entity_id)
        entity = await self.session.get(Entity, entity_id)
        if entity is None:
            raise NotFound("Entity not found")

        apply_patch(entity, patch_fields(patch))
        entity.updated_at = utc_now()
        await self.session.commit()
        return entity

    async def list_members(self, entity_id: uuid.UUID, requester: uuid.UUID) -> list[EntityMember]:
        await access.require_membership(self.session, requester, entity_id)
        result = await self.session.execute(
            select(Membership, User)
            .join(User, User.id == Membership.user_id)
            .where(Membership.entity_id == entity_id)
            .order_by(Membership.created_at)
        )
        return [
            EntityMember(
                id=membership.id,
                user_id=membership.user_id,
                entity_id=membership.entity_id,
                role=membership.role,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
            )
            for membership, user in result.all()
        ]
