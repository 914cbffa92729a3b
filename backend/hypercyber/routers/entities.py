"""Entity endpoints: organizations and their members."""
import uuid
from typing import Sequence

from fastapi import APIRouter, Depends, status

from ..dependencies import get_current_user_id, get_entity_store
from ..models import Entity
from ..schemas import EntityCreate, EntityMember, EntityRead, EntityUpdate
from ..services import EntityStore

router = APIRouter(prefix="/entities", tags=["entities"])


@router.get("", response_model=list[EntityRead])
async def list_entities(
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: EntityStore = Depends(get_entity_store),
) -> Sequence[Entity]:
    """Return every entity the caller belongs to."""

    return await store.list_entities(user_id)


@router.post("", response_model=EntityRead, status_code=status.HTTP_201_CREATED)
async def create_entity(
    payload: EntityCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: EntityStore = Depends(get_entity_store),
) -> Entity:
    """Create an entity; the caller becomes its first admin."""

    return await store.create_entity(payload, user_id)


@router.get("/{entity_id}", response_model=EntityRead)
async def get_entity(
    entity_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: EntityStore = Depends(get_entity_store),
) -> Entity:
    return await store.get_entity(entity_id, user_id)


@router.put("/{entity_id}", response_model=EntityRead)
async def update_entity(
    entity_id: uuid.UUID,
    payload: EntityUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: EntityStore = Depends(get_entity_store),
) -> Entity:
    """Update name or description (admin only)."""

    return await store.update_entity(entity_id, payload, user_id)


@router.get("/{entity_id}/users", response_model=list[EntityMember])
async def list_entity_users(
    entity_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: EntityStore = Depends(get_entity_store),
) -> list[EntityMember]:
    return await store.list_members(entity_id, user_id)
