"""Catalogue store: global asset records and their typed relations.

Catalogue items are not entity-scoped: being authenticated is enough to read
or write them. Listing can optionally be narrowed to the items linked to one
entity through ``catalogue_relations``, in which case the requester must be a
member of that entity.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, ClassVar, Generic, Sequence, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import access
from ..errors import BadRequest, NotFound
from ..models import (
    CatalogueRelation,
    EncryptionAlgorithm,
    Endpoint,
    LicenseKey,
    SoftwareVersion,
    utc_now,
)
from ..schemas import CatalogueRelationCreate
from ..storage import Storage, clean_filename
from .common import apply_patch, patch_fields

logger = logging.getLogger(__name__)

ENTITY_TYPE = "entity"
FILE_LICENSE = "file"
METADATA_RENAME = {"metadata": "metadata_"}

ItemT = TypeVar("ItemT", Endpoint, LicenseKey, SoftwareVersion, EncryptionAlgorithm)


async def related_item_ids(
    session: AsyncSession, item_type: str, entity_id: uuid.UUID
) -> list[uuid.UUID]:
    """Ids of ``item_type`` items linked to the entity, in either direction."""

    result = await session.execute(
        select(CatalogueRelation).where(
            or_(
                and_(
                    CatalogueRelation.source_type == item_type,
                    CatalogueRelation.target_type == ENTITY_TYPE,
                    CatalogueRelation.target_id == entity_id,
                ),
                and_(
                    CatalogueRelation.source_type == ENTITY_TYPE,
                    CatalogueRelation.source_id == entity_id,
                    CatalogueRelation.target_type == item_type,
                ),
            )
        )
    )
    ids = set()
    for relation in result.scalars().all():
        ids.add(relation.source_id if relation.source_type == item_type else relation.target_id)
    return list(ids)


class CatalogueItemStore(Generic[ItemT]):
    """Create/list/get/update for one catalogue item family."""

    model: ClassVar[type]
    item_type: ClassVar[str]
    not_found_message: ClassVar[str] = "Item not found"

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def initial_values(self) -> dict[str, Any]:
        return {}

    def filter_list(self, stmt: Select, filters: dict[str, Any]) -> Select:
        return stmt

    async def create(self, payload: BaseModel) -> ItemT:
        fields = {METADATA_RENAME.get(key, key): value for key, value in payload.model_dump().items()}
        now = utc_now()
        item = self.model(
            id=uuid.uuid4(),
            created_at=now,
            updated_at=now,
            **self.initial_values(),
            **fields,
        )
        self.session.add(item)
        await self.session.commit()
        logger.info("%s %s created", self.model.__name__, item.id)
        return item

    async def list_items(
        self,
        requester: uuid.UUID,
        entity_id: uuid.UUID | None = None,
        **filters: Any,
    ) -> Sequence[ItemT]:
        stmt = select(self.model)
        if entity_id is not None:
            await access.require_membership(self.session, requester, entity_id)
            ids = await related_item_ids(self.session, self.item_type, entity_id)
            if not ids:
                return []
            stmt = stmt.where(self.model.id.in_(ids))

        stmt = self.filter_list(stmt, filters)
        result = await self.session.execute(stmt.order_by(self.model.created_at.desc()))
        return list(result.scalars().all())

    async def get(self, item_id: uuid.UUID) -> ItemT:
        item = await self.session.get(self.model, item_id)
        if item is None:
            raise NotFound(self.not_found_message)
        return item

    async def update(self, item_id: uuid.UUID, patch: BaseModel) -> ItemT:
        item = await self.get(item_id)
        apply_patch(item, patch_fields(patch, rename=METADATA_RENAME))
        item.updated_at = utc_now()
        await self.session.commit()
        return item


class EndpointStore(CatalogueItemStore[Endpoint]):
    model = Endpoint
    item_type = "endpoint"
    not_found_message = "Endpoint not found"

    def filter_list(self, stmt: Select, filters: dict[str, Any]) -> Select:
        if filters.get("endpoint_type"):
            stmt = stmt.where(Endpoint.endpoint_type == filters["endpoint_type"])
        return stmt


class SoftwareVersionStore(CatalogueItemStore[SoftwareVersion]):
    model = SoftwareVersion
    item_type = "software_version"
    not_found_message = "Software version not found"


class EncryptionAlgorithmStore(CatalogueItemStore[EncryptionAlgorithm]):
    model = EncryptionAlgorithm
    item_type = "encryption_algorithm"
    not_found_message = "Encryption algorithm not found"


class LicenseKeyStore(CatalogueItemStore[LicenseKey]):
    """License keys, which may carry a file kept in the storage backend."""

    model = LicenseKey
    item_type = "license_key"
    not_found_message = "License key not found"

    def __init__(self, session: AsyncSession, storage: Storage) -> None:
        super().__init__(session)
        self.storage = storage

    def initial_values(self) -> dict[str, Any]:
        return {"storage_type": self.storage.backend}

    async def upload_file(self, license_key_id: uuid.UUID, data: bytes, filename: str) -> LicenseKey:
        """Store ``data`` as the key's file, replacing any previous one."""

        license_key = await self.get(license_key_id)
        if not data:
            raise BadRequest("Uploaded file is empty")
        name = clean_filename(filename)
        if name is None:
            raise BadRequest(f"Invalid file name: {filename!r}")

        previous_path = license_key.file_path
        path = await self.storage.save(data, name, license_key.id)
        size = await self.storage.size(path)
        if previous_path and previous_path != path:
            await self.storage.delete(previous_path)

        license_key.license_type = FILE_LICENSE
        license_key.file_path = path
        license_key.file_name = name
        license_key.file_size = size
        license_key.storage_type = self.storage.backend
        license_key.updated_at = utc_now()
        await self.session.commit()
        logger.info("Stored %d bytes for license key %s at %s", size, license_key.id, path)
        return license_key

    async def download_file(self, license_key_id: uuid.UUID) -> tuple[bytes, str]:
        license_key = await self.get(license_key_id)
        if not license_key.file_path:
            raise NotFound("License key has no file")
        data = await self.storage.get(license_key.file_path)
        return data, license_key.file_name or "license"


class RelationStore:
    """Typed edges between catalogue items and entities. No referential checks."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_relation(self, payload: CatalogueRelationCreate) -> CatalogueRelation:
        relation = CatalogueRelation(
            id=uuid.uuid4(),
            created_at=utc_now(),
            **payload.model_dump(),
        )
        self.session.add(relation)
        await self.session.commit()
        return relation

    async def list_relations(
        self,
        source_type: str | None = None,
        source_id: uuid.UUID | None = None,
        target_type: str | None = None,
        target_id: uuid.UUID | None = None,
        relation_type: str | None = None,
    ) -> Sequence[CatalogueRelation]:
        stmt = select(CatalogueRelation)
        criteria = [
            (CatalogueRelation.source_type, source_type),
            (CatalogueRelation.source_id, source_id),
            (CatalogueRelation.target_type, target_type),
            (CatalogueRelation.target_id, target_id),
            (CatalogueRelation.relation_type, relation_type),
        ]
        for column, value in criteria:
            if value is not None:
                stmt = stmt.where(column == value)
        result = await self.session.execute(stmt.order_by(CatalogueRelation.created_at.desc()))
        return list(result.scalars().all())
