"""Catalogue endpoints. Any authenticated user may read and write them."""
import uuid
from typing import Sequence
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from ..dependencies import (
    get_current_user_id,
    get_encryption_algorithm_store,
    get_endpoint_store,
    get_license_key_store,
    get_relation_store,
    get_software_version_store,
)
from ..models import (
    CatalogueRelation,
    EncryptionAlgorithm,
    Endpoint,
    LicenseKey,
    SoftwareVersion,
)
from ..schemas import (
    CatalogueRelationCreate,
    CatalogueRelationRead,
    EncryptionAlgorithmCreate,
    EncryptionAlgorithmRead,
    EncryptionAlgorithmUpdate,
    EndpointCreate,
    EndpointRead,
    EndpointUpdate,
    LicenseKeyCreate,
    LicenseKeyRead,
    LicenseKeyUpdate,
    SoftwareVersionCreate,
    SoftwareVersionRead,
    SoftwareVersionUpdate,
)
from ..services import (
    EncryptionAlgorithmStore,
    EndpointStore,
    LicenseKeyStore,
    RelationStore,
    SoftwareVersionStore,
)

router = APIRouter(
    prefix="/catalogue",
    tags=["catalogue"],
    dependencies=[Depends(get_current_user_id)],
)


def content_disposition(filename: str) -> str:
    """Attachment header value; non-token names go through RFC 5987 encoding."""

    quoted = quote(filename)
    if quoted == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename*=utf-8''{quoted}"


# ========== Endpoints ==========


@router.get("/endpoints", response_model=list[EndpointRead])
async def list_endpoints(
    endpoint_type: str | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: EndpointStore = Depends(get_endpoint_store),
) -> Sequence[Endpoint]:
    return await store.list_items(user_id, entity_id, endpoint_type=endpoint_type)


@router.post("/endpoints", response_model=EndpointRead, status_code=status.HTTP_201_CREATED)
async def create_endpoint(
    payload: EndpointCreate, store: EndpointStore = Depends(get_endpoint_store)
) -> Endpoint:
    return await store.create(payload)


@router.get("/endpoints/{item_id}", response_model=EndpointRead)
async def get_endpoint(
    item_id: uuid.UUID, store: EndpointStore = Depends(get_endpoint_store)
) -> Endpoint:
    return await store.get(item_id)


@router.put("/endpoints/{item_id}", response_model=EndpointRead)
async def update_endpoint(
    item_id: uuid.UUID,
    payload: EndpointUpdate,
    store: EndpointStore = Depends(get_endpoint_store),
) -> Endpoint:
    return await store.update(item_id, payload)


# ========== License keys ==========


@router.get("/license-keys", response_model=list[LicenseKeyRead])
async def list_license_keys(
    entity_id: uuid.UUID | None = Query(default=None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: LicenseKeyStore = Depends(get_license_key_store),
) -> Sequence[LicenseKey]:
    return await store.list_items(user_id, entity_id)


@router.post("/license-keys", response_model=LicenseKeyRead, status_code=status.HTTP_201_CREATED)
async def create_license_key(
    payload: LicenseKeyCreate, store: LicenseKeyStore = Depends(get_license_key_store)
) -> LicenseKey:
    return await store.create(payload)


@router.get("/license-keys/{item_id}", response_model=LicenseKeyRead)
async def get_license_key(
    item_id: uuid.UUID, store: LicenseKeyStore = Depends(get_license_key_store)
) -> LicenseKey:
    return await store.get(item_id)


@router.put("/license-keys/{item_id}", response_model=LicenseKeyRead)
async def update_license_key(
    item_id: uuid.UUID,
    payload: LicenseKeyUpdate,
    store: LicenseKeyStore = Depends(get_license_key_store),
) -> LicenseKey:
    return await store.update(item_id, payload)


@router.post("/license-keys/{item_id}/upload", response_model=LicenseKeyRead)
async def upload_license_key_file(
    item_id: uuid.UUID,
    file: UploadFile = File(...),
    store: LicenseKeyStore = Depends(get_license_key_store),
) -> LicenseKey:
    """Attach a license file, replacing any earlier upload."""

    data = await file.read()
    return await store.upload_file(item_id, data, file.filename or "license")


@router.get("/license-keys/{item_id}/file")
async def download_license_key_file(
    item_id: uuid.UUID, store: LicenseKeyStore = Depends(get_license_key_store)
) -> Response:
    data, filename = await store.download_file(item_id)
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": content_disposition(filename)},
    )


# ========== Software versions ==========


@router.get("/software-versions", response_model=list[SoftwareVersionRead])
async def list_software_versions(
    entity_id: uuid.UUID | None = Query(default=None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: SoftwareVersionStore = Depends(get_software_version_store),
) -> Sequence[SoftwareVersion]:
    return await store.list_items(user_id, entity_id)


@router.post(
    "/software-versions", response_model=SoftwareVersionRead, status_code=status.HTTP_201_CREATED
)
async def create_software_version(
    payload: SoftwareVersionCreate,
    store: SoftwareVersionStore = Depends(get_software_version_store),
) -> SoftwareVersion:
    return await store.create(payload)


@router.get("/software-versions/{item_id}", response_model=SoftwareVersionRead)
async def get_software_version(
    item_id: uuid.UUID, store: SoftwareVersionStore = Depends(get_software_version_store)
) -> SoftwareVersion:
    return await store.get(item_id)


@router.put("/software-versions/{item_id}", response_model=SoftwareVersionRead)
async def update_software_version(
    item_id: uuid.UUID,
    payload: SoftwareVersionUpdate,
    store: SoftwareVersionStore = Depends(get_software_version_store),
) -> SoftwareVersion:
    return await store.update(item_id, payload)


# ========== Encryption algorithms ==========


@router.get("/encryption-algorithms", response_model=list[EncryptionAlgorithmRead])
async def list_encryption_algorithms(
    entity_id: uuid.UUID | None = Query(default=None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: EncryptionAlgorithmStore = Depends(get_encryption_algorithm_store),
) -> Sequence[EncryptionAlgorithm]:
    return await store.list_items(user_id, entity_id)


@router.post(
    "/encryption-algorithms",
    response_model=EncryptionAlgorithmRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_encryption_algorithm(
    payload: EncryptionAlgorithmCreate,
    store: EncryptionAlgorithmStore = Depends(get_encryption_algorithm_store),
) -> EncryptionAlgorithm:
    return await store.create(payload)


@router.get("/encryption-algorithms/{item_id}", response_model=EncryptionAlgorithmRead)
async def get_encryption_algorithm(
    item_id: uuid.UUID,
    store: EncryptionAlgorithmStore = Depends(get_encryption_algorithm_store),
) -> EncryptionAlgorithm:
    return await store.get(item_id)


@router.put("/encryption-algorithms/{item_id}", response_model=EncryptionAlgorithmRead)
async def update_encryption_algorithm(
    item_id: uuid.UUID,
    payload: EncryptionAlgorithmUpdate,
    store: EncryptionAlgorithmStore = Depends(get_encryption_algorithm_store),
) -> EncryptionAlgorithm:
    return await store.update(item_id, payload)


# ========== Relations ==========


@router.post(
    "/relations", response_model=CatalogueRelationRead, status_code=status.HTTP_201_CREATED
)
async def create_catalogue_relation(
    payload: CatalogueRelationCreate,
    store: RelationStore = Depends(get_relation_store),
) -> CatalogueRelation:
    return await store.create_relation(payload)


@router.get("/relations", response_model=list[CatalogueRelationRead])
async def list_catalogue_relations(
    source_type: str | None = Query(default=None),
    source_id: uuid.UUID | None = Query(default=None),
    target_type: str | None = Query(default=None),
    target_id: uuid.UUID | None = Query(default=None),
    relation_type: str | None = Query(default=None),
    store: RelationStore = Depends(get_relation_store),
) -> Sequence[CatalogueRelation]:
    return await store.list_relations(
        source_type=source_type,
        source_id=source_id,
        target_type=target_type,
        target_id=target_id,
        relation_type=relation_type,
    )
