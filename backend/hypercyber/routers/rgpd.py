"""RGPD endpoints: processing register, access requests and breaches.

The same routes are served twice: scoped under ``/entities/{entity_id}/rgpd``
and, for older clients, under ``/rgpd`` with ``?entity_id=`` in the query.
"""
import uuid
from collections.abc import Callable
from typing import Sequence

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import (
    get_access_request_store,
    get_breach_store,
    get_current_user_id,
    get_register_store,
)
from ..errors import BadRequest
from ..models import AccessRequest, Breach, RegisterEntry
from ..schemas import (
    AccessRequestCreate,
    AccessRequestRead,
    AccessRequestRespond,
    AccessRequestUpdate,
    BreachCreate,
    BreachRead,
    BreachUpdate,
    RegisterEntryCreate,
    RegisterEntryRead,
    RegisterEntryUpdate,
)
from ..services import AccessRequestStore, BreachStore, RegisterStore


def path_scope(entity_id: uuid.UUID) -> uuid.UUID | None:
    return entity_id


def query_scope(entity_id: uuid.UUID | None = Query(default=None)) -> uuid.UUID | None:
    return entity_id


def required(entity_id: uuid.UUID | None) -> uuid.UUID:
    if entity_id is None:
        raise BadRequest("Missing entity_id")
    return entity_id


def build_router(prefix: str, scope: Callable[..., uuid.UUID | None]) -> APIRouter:
    """Wire every RGPD route with ``scope`` supplying the optional entity id."""

    router = APIRouter(prefix=prefix, tags=["rgpd"])

    # -- processing register ----------------------------------------------

    @router.get("/register", response_model=list[RegisterEntryRead])
    async def list_register(
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: RegisterStore = Depends(get_register_store),
    ) -> Sequence[RegisterEntry]:
        return await store.list_records(user_id, entity_id)

    @router.post("/register", response_model=RegisterEntryRead, status_code=status.HTTP_201_CREATED)
    async def add_to_register(
        payload: RegisterEntryCreate,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: RegisterStore = Depends(get_register_store),
    ) -> RegisterEntry:
        return await store.create(required(entity_id), payload, user_id)

    @router.get("/register/{record_id}", response_model=RegisterEntryRead)
    async def get_register_entry(
        record_id: uuid.UUID,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: RegisterStore = Depends(get_register_store),
    ) -> RegisterEntry:
        return await store.get(record_id, user_id, entity_id)

    @router.put("/register/{record_id}", response_model=RegisterEntryRead)
    async def update_register_entry(
        record_id: uuid.UUID,
        payload: RegisterEntryUpdate,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: RegisterStore = Depends(get_register_store),
    ) -> RegisterEntry:
        return await store.update(record_id, payload, user_id, entity_id)

    # -- access requests --------------------------------------------------

    @router.get("/access-requests", response_model=list[AccessRequestRead])
    async def list_access_requests(
        status_filter: str | None = Query(default=None, alias="status"),
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: AccessRequestStore = Depends(get_access_request_store),
    ) -> Sequence[AccessRequest]:
        return await store.list_records(user_id, entity_id, status=status_filter)

    @router.post(
        "/access-requests", response_model=AccessRequestRead, status_code=status.HTTP_201_CREATED
    )
    async def create_access_request(
        payload: AccessRequestCreate,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: AccessRequestStore = Depends(get_access_request_store),
    ) -> AccessRequest:
        return await store.create(required(entity_id), payload, user_id)

    @router.get("/access-requests/{record_id}", response_model=AccessRequestRead)
    async def get_access_request(
        record_id: uuid.UUID,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: AccessRequestStore = Depends(get_access_request_store),
    ) -> AccessRequest:
        return await store.get(record_id, user_id, entity_id)

    @router.put("/access-requests/{record_id}", response_model=AccessRequestRead)
    async def update_access_request(
        record_id: uuid.UUID,
        payload: AccessRequestUpdate,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: AccessRequestStore = Depends(get_access_request_store),
    ) -> AccessRequest:
        return await store.update(record_id, payload, user_id, entity_id)

    @router.post("/access-requests/{record_id}/respond", response_model=AccessRequestRead)
    async def respond_to_request(
        record_id: uuid.UUID,
        payload: AccessRequestRespond,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: AccessRequestStore = Depends(get_access_request_store),
    ) -> AccessRequest:
        return await store.respond(record_id, payload, user_id, entity_id)

    # -- breaches ---------------------------------------------------------

    @router.get("/breaches", response_model=list[BreachRead])
    async def list_breaches(
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: BreachStore = Depends(get_breach_store),
    ) -> Sequence[Breach]:
        return await store.list_records(user_id, entity_id)

    @router.post("/breaches", response_model=BreachRead, status_code=status.HTTP_201_CREATED)
    async def create_breach(
        payload: BreachCreate,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: BreachStore = Depends(get_breach_store),
    ) -> Breach:
        return await store.create(required(entity_id), payload, user_id)

    @router.get("/breaches/{record_id}", response_model=BreachRead)
    async def get_breach(
        record_id: uuid.UUID,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: BreachStore = Depends(get_breach_store),
    ) -> Breach:
        return await store.get(record_id, user_id, entity_id)

    @router.put("/breaches/{record_id}", response_model=BreachRead)
    async def update_breach(
        record_id: uuid.UUID,
        payload: BreachUpdate,
        entity_id: uuid.UUID | None = Depends(scope),
        user_id: uuid.UUID = Depends(get_current_user_id),
        store: BreachStore = Depends(get_breach_store),
    ) -> Breach:
        return await store.update(record_id, payload, user_id, entity_id)

    return router


router = build_router("/entities/{entity_id}/rgpd", path_scope)
legacy_router = build_router("/rgpd", query_scope)
