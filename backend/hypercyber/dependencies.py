"""Reusable FastAPI dependencies.

Everything a handler needs (settings, sessions, token service, storage) is
built once in :func:`hypercyber.main.create_app`, kept on ``app.state`` and
handed out from here.
"""
from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .errors import InvalidToken, Unauthorized
from .services import (
    AccessRequestStore,
    BreachStore,
    EncryptionAlgorithmStore,
    EndpointStore,
    EntityStore,
    LicenseKeyStore,
    RegisterStore,
    RelationStore,
    SoftwareVersionStore,
)
from .storage import Storage
from .tokens import TokenService

# Missing or non-Bearer headers reach get_current_user_id as None.
bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async SQLAlchemy session per request."""

    async with request.app.state.session_factory() as session:
        yield session


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> uuid.UUID:
    """
    Return the user id carried by the Authorization: Bearer <token> header.

    The user row is not re-read here; active status is checked at login,
    refresh and /auth/me only.
    """

    if credentials is None:
        raise Unauthorized("Invalid or missing token")
    try:
        claims = tokens.verify(credentials.credentials)
    except InvalidToken as exc:
        raise Unauthorized("Invalid or missing token") from exc
    return claims.user_id


def get_entity_store(session: AsyncSession = Depends(get_db_session)) -> EntityStore:
    return EntityStore(session)


def get_register_store(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> RegisterStore:
    return RegisterStore(session, settings.strict_status_values)


def get_access_request_store(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> AccessRequestStore:
    return AccessRequestStore(session, settings.strict_status_values)


def get_breach_store(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> BreachStore:
    return BreachStore(session, settings.strict_status_values)


def get_endpoint_store(session: AsyncSession = Depends(get_db_session)) -> EndpointStore:
    return EndpointStore(session)


def get_license_key_store(
    session: AsyncSession = Depends(get_db_session),
    storage: Storage = Depends(get_storage),
) -> LicenseKeyStore:
    return LicenseKeyStore(session, storage)


def get_software_version_store(
    session: AsyncSession = Depends(get_db_session),
) -> SoftwareVersionStore:
    return SoftwareVersionStore(session)


def get_encryption_algorithm_store(
    session: AsyncSession = Depends(get_db_session),
) -> EncryptionAlgorithmStore:
    return EncryptionAlgorithmStore(session)


def get_relation_store(session: AsyncSession = Depends(get_db_session)) -> RelationStore:
    return RelationStore(session)
