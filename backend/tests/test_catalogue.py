"""Integration tests for the asset catalogue."""
import uuid

import pytest
from httpx import AsyncClient

from hypercyber.routers.catalogue import content_disposition

from conftest import bearer


@pytest.mark.asyncio
async def test_catalogue_requires_authentication(client: AsyncClient) -> None:
    response = await client.get("/api/catalogue/endpoints")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_endpoint_crud_and_type_filter(client: AsyncClient, register) -> None:
    user = await register()
    headers = bearer(user["token"])

    server = await client.post(
        "/api/catalogue/endpoints",
        json={
            "name": "db-01",
            "endpoint_type": "machine",
            "address": "10.0.0.5",
            "metadata": {"os": "debian"},
        },
        headers=headers,
    )
    assert server.status_code == 201
    assert server.json()["metadata"] == {"os": "debian"}

    await client.post(
        "/api/catalogue/endpoints",
        json={"name": "billing", "endpoint_type": "api", "address": "https://api.example.com"},
        headers=headers,
    )

    machines = await client.get(
        "/api/catalogue/endpoints", params={"endpoint_type": "machine"}, headers=headers
    )
    assert [item["name"] for item in machines.json()] == ["db-01"]

    everything = await client.get("/api/catalogue/endpoints", headers=headers)
    assert len(everything.json()) == 2

    updated = await client.put(
        f"/api/catalogue/endpoints/{server.json()['id']}",
        json={"description": "Primary database"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["description"] == "Primary database"
    assert updated.json()["metadata"] == {"os": "debian"}

    missing = await client.get(f"/api/catalogue/endpoints/{uuid.uuid4()}", headers=headers)
    assert missing.status_code == 404
    assert missing.json() == {"error": "Endpoint not found"}


@pytest.mark.asyncio
async def test_catalogue_items_are_shared_between_users(client: AsyncClient, register) -> None:
    first = await register()
    second = await register("second@example.com")

    created = await client.post(
        "/api/catalogue/encryption-algorithms",
        json={"name": "AES", "algorithm_type": "symmetric", "key_size": 256},
        headers=bearer(first["token"]),
    )
    assert created.status_code == 201

    seen = await client.get(
        f"/api/catalogue/encryption-algorithms/{created.json()['id']}",
        headers=bearer(second["token"]),
    )
    assert seen.status_code == 200
    assert seen.json()["key_size"] == 256


@pytest.mark.asyncio
async def test_software_versions(client: AsyncClient, register) -> None:
    user = await register()
    headers = bearer(user["token"])

    created = await client.post(
        "/api/catalogue/software-versions",
        json={"name": "nginx", "version": "1.25.3", "release_date": "2023-10-24T00:00:00Z"},
        headers=headers,
    )
    assert created.status_code == 201

    updated = await client.put(
        f"/api/catalogue/software-versions/{created.json()['id']}",
        json={"version": "1.25.4"},
        headers=headers,
    )
    assert updated.json()["version"] == "1.25.4"
    assert updated.json()["name"] == "nginx"


@pytest.mark.asyncio
async def test_license_key_file_upload_and_download(client: AsyncClient, register) -> None:
    user = await register()
    headers = bearer(user["token"])

    created = await client.post(
        "/api/catalogue/license-keys",
        json={"name": "IDE seat", "license_type": "key", "key_value": "ABCD-1234"},
        headers=headers,
    )
    assert created.status_code == 201
    license_key = created.json()
    assert license_key["storage_type"] == "local"
    assert license_key["file_path"] is None

    uploaded = await client.post(
        f"/api/catalogue/license-keys/{license_key['id']}/upload",
        files={"file": ("seat.lic", b"LICENSE-CONTENT", "application/octet-stream")},
        headers=headers,
    )
    assert uploaded.status_code == 200
    body = uploaded.json()
    assert body["license_type"] == "file"
    assert body["file_name"] == "seat.lic"
    assert body["file_size"] == len(b"LICENSE-CONTENT")

    downloaded = await client.get(
        f"/api/catalogue/license-keys/{license_key['id']}/file", headers=headers
    )
    assert downloaded.status_code == 200
    assert downloaded.content == b"LICENSE-CONTENT"
    assert "seat.lic" in downloaded.headers["content-disposition"]


@pytest.mark.asyncio
async def test_license_key_upload_edge_cases(client: AsyncClient, register) -> None:
    user = await register()
    headers = bearer(user["token"])
    created = await client.post(
        "/api/catalogue/license-keys",
        json={"name": "Empty", "license_type": "key"},
        headers=headers,
    )
    key_id = created.json()["id"]

    no_file = await client.get(f"/api/catalogue/license-keys/{key_id}/file", headers=headers)
    assert no_file.status_code == 404

    empty = await client.post(
        f"/api/catalogue/license-keys/{key_id}/upload",
        files={"file": ("empty.lic", b"", "application/octet-stream")},
        headers=headers,
    )
    assert empty.status_code == 400

    unknown = await client.post(
        f"/api/catalogue/license-keys/{uuid.uuid4()}/upload",
        files={"file": ("a.lic", b"data", "application/octet-stream")},
        headers=headers,
    )
    assert unknown.status_code == 404
    assert unknown.json() == {"error": "License key not found"}


@pytest.mark.asyncio
async def test_license_key_upload_rejects_unusable_file_names(
    client: AsyncClient, register
) -> None:
    user = await register()
    headers = bearer(user["token"])
    created = await client.post(
        "/api/catalogue/license-keys", json={"name": "Odd", "license_type": "key"}, headers=headers
    )
    key_id = created.json()["id"]

    for name in ("..", "."):
        response = await client.post(
            f"/api/catalogue/license-keys/{key_id}/upload",
            files={"file": (name, b"abc", "application/octet-stream")},
            headers=headers,
        )
        assert response.status_code == 400, name
        assert response.json() == {"error": f"Invalid file name: {name!r}"}

    unchanged = await client.get(f"/api/catalogue/license-keys/{key_id}", headers=headers)
    assert unchanged.json()["file_path"] is None
    assert unchanged.json()["license_type"] == "key"

    nested = await client.post(
        f"/api/catalogue/license-keys/{key_id}/upload",
        files={"file": ("../../etc/seat.lic", b"abc", "application/octet-stream")},
        headers=headers,
    )
    assert nested.status_code == 200
    assert nested.json()["file_name"] == "seat.lic"


@pytest.mark.asyncio
async def test_license_key_download_quotes_file_name(client: AsyncClient, register) -> None:
    user = await register()
    headers = bearer(user["token"])
    created = await client.post(
        "/api/catalogue/license-keys", json={"name": "Quoted", "license_type": "key"}, headers=headers
    )
    key_id = created.json()["id"]

    await client.post(
        f"/api/catalogue/license-keys/{key_id}/upload",
        files={"file": ("seat key é.lic", b"abc", "application/octet-stream")},
        headers=headers,
    )
    downloaded = await client.get(f"/api/catalogue/license-keys/{key_id}/file", headers=headers)

    assert downloaded.status_code == 200
    assert downloaded.headers["content-disposition"] == (
        "attachment; filename*=utf-8''seat%20key%20%C3%A9.lic"
    )


def test_content_disposition_encoding() -> None:
    assert content_disposition("seat.lic") == 'attachment; filename="seat.lic"'
    assert content_disposition('a"b.lic') == "attachment; filename*=utf-8''a%22b.lic"
    assert content_disposition("x\r\ny.lic") == "attachment; filename*=utf-8''x%0D%0Ay.lic"


@pytest.mark.asyncio
async def test_license_key_metadata(client: AsyncClient, register) -> None:
    user = await register()
    headers = bearer(user["token"])

    created = await client.post(
        "/api/catalogue/license-keys",
        json={"name": "Seats", "license_type": "key", "metadata": {"seats": 25}},
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["metadata"] == {"seats": 25}

    key_id = created.json()["id"]
    updated = await client.put(
        f"/api/catalogue/license-keys/{key_id}",
        json={"metadata": {"seats": 30, "vendor": "Acme"}},
        headers=headers,
    )
    assert updated.json()["metadata"] == {"seats": 30, "vendor": "Acme"}

    fetched = await client.get(f"/api/catalogue/license-keys/{key_id}", headers=headers)
    assert fetched.json()["metadata"] == {"seats": 30, "vendor": "Acme"}
    assert fetched.json()["name"] == "Seats"


@pytest.mark.asyncio
async def test_relations_and_entity_scoped_listing(
    client: AsyncClient, register, create_entity
) -> None:
    owner = await register()
    outsider = await register("outsider@example.com")
    entity = await create_entity(owner["token"])
    headers = bearer(owner["token"])

    linked = await client.post(
        "/api/catalogue/endpoints", json={"name": "crm", "endpoint_type": "program"}, headers=headers
    )
    await client.post(
        "/api/catalogue/endpoints", json={"name": "other", "endpoint_type": "program"}, headers=headers
    )

    relation = await client.post(
        "/api/catalogue/relations",
        json={
            "source_type": "endpoint",
            "source_id": linked.json()["id"],
            "target_type": "entity",
            "target_id": entity["id"],
            "relation_type": "used_by",
        },
        headers=headers,
    )
    assert relation.status_code == 201

    relations = await client.get(
        "/api/catalogue/relations", params={"target_id": entity["id"]}, headers=headers
    )
    assert [item["id"] for item in relations.json()] == [relation.json()["id"]]

    scoped = await client.get(
        "/api/catalogue/endpoints", params={"entity_id": entity["id"]}, headers=headers
    )
    assert [item["name"] for item in scoped.json()] == ["crm"]

    forbidden = await client.get(
        "/api/catalogue/endpoints",
        params={"entity_id": entity["id"]},
        headers=bearer(outsider["token"]),
    )
    assert forbidden.status_code == 403

    no_links = await client.get(
        "/api/catalogue/license-keys", params={"entity_id": entity["id"]}, headers=headers
    )
    assert no_links.json() == []
