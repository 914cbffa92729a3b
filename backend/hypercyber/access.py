"""Membership and role checks guarding entity-scoped resources.

A user may touch an entity's resources only through an existing
``user_entities`` row for the pair. Mutating the entity itself additionally
needs the ``admin`` role. Failures raise :class:`Forbidden`; results are never
silently filtered.
"""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import Forbidden
from .models import ADMIN_ROLE, Membership


async def has_membership(session: AsyncSession, user_id: uuid.UUID, entity_id: uuid.UUID) -> bool:
    """True iff the user belongs to the entity, whatever the role."""

    result = await session.execute(
        select(Membership.id)
        .where(Membership.user_id == user_id, Membership.entity_id == entity_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def has_role(
    session: AsyncSession, user_id: uuid.UUID, entity_id: uuid.UUID, role: str
) -> bool:
    """True iff the membership exists with exactly ``role``."""

    result = await session.execute(
        select(Membership.id)
        .where(
            Membership.user_id == user_id,
            Membership.entity_id == entity_id,
            Membership.role == role,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def require_membership(
    session: AsyncSession, user_id: uuid.UUID, entity_id: uuid.UUID
) -> None:
    if not await has_membership(session, user_id, entity_id):
        raise Forbidden("Access denied")


async def require_role(
    session: AsyncSession, user_id: uuid.UUID, entity_id: uuid.UUID, role: str
) -> None:
    if not await has_role(session, user_id, entity_id, role):
        raise Forbidden(f"{role.capitalize()} access required")


async def require_admin(session: AsyncSession, user_id: uuid.UUID, entity_id: uuid.UUID) -> None:
    await require_role(session, user_id, entity_id, ADMIN_ROLE)


async def member_entity_ids(session: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    """Every entity the user holds a membership in."""

    result = await session.execute(
        select(Membership.entity_id).where(Membership.user_id == user_id)
    )
    return list(result.scalars().all())
