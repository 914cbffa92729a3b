"""OIDC code flow against a mocked identity provider."""
import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi import FastAPI
from httpx import AsyncClient
from sqlalchemy import select

from hypercyber.models import User
from hypercyber.oidc import OIDC_PASSWORD_PLACEHOLDER

from conftest import bearer

ISSUER = "https://idp.example.com"

DISCOVERY = {
    "issuer": ISSUER,
    "authorization_endpoint": f"{ISSUER}/authorize",
    "token_endpoint": f"{ISSUER}/token",
    "userinfo_endpoint": f"{ISSUER}/userinfo",
}


def provider(userinfo: dict, token_status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/.well-known/openid-configuration":
            return httpx.Response(200, json=DISCOVERY)
        if request.url.path == "/token":
            form = parse_qs(request.content.decode())
            assert form["grant_type"] == ["authorization_code"]
            assert form["client_id"] == ["hypercyber"]
            if token_status != 200:
                return httpx.Response(token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "idp-token", "token_type": "Bearer"})
        if request.url.path == "/userinfo":
            assert request.headers["Authorization"] == "Bearer idp-token"
            return httpx.Response(200, content=json.dumps(userinfo))
        return httpx.Response(404)

    return httpx.MockTransport(handler)


async def configure_oidc(app: FastAPI, transport: httpx.MockTransport) -> None:
    app.state.settings = app.state.settings.model_copy(
        update={
            "oidc_issuer": ISSUER,
            "oidc_client_id": "hypercyber",
            "oidc_client_secret": "shh",
            "oidc_redirect_uri": "http://testserver/api/auth/oidc/callback",
            "frontend_url": "http://frontend.test",
        }
    )
    await app.state.http_client.aclose()
    app.state.http_client = httpx.AsyncClient(transport=transport)


@pytest.mark.asyncio
async def test_oidc_not_configured(client: AsyncClient) -> None:
    response = await client.get("/api/auth/oidc/authorize")
    assert response.status_code == 400
    assert response.json() == {"error": "OIDC not configured"}


@pytest.mark.asyncio
async def test_authorize_redirects_to_provider(app: FastAPI, client: AsyncClient) -> None:
    await configure_oidc(app, provider({}))

    response = await client.get("/api/auth/oidc/authorize")

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == f"{ISSUER}/authorize"
    query = parse_qs(location.query)
    assert query["client_id"] == ["hypercyber"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["openid email profile"]


@pytest.mark.asyncio
async def test_callback_provisions_user_and_redirects(app: FastAPI, client: AsyncClient) -> None:
    await configure_oidc(
        app,
        provider({"sub": "abc", "email": "sso@example.com", "given_name": "Sam", "family_name": "O"}),
    )

    response = await client.get("/api/auth/oidc/callback", params={"code": "xyz"})

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert location.netloc == "frontend.test"
    assert location.path == "/auth/callback"
    tokens = parse_qs(location.query)

    me = await client.get("/api/auth/me", headers=bearer(tokens["token"][0]))
    assert me.status_code == 200
    assert me.json()["email"] == "sso@example.com"
    assert me.json()["first_name"] == "Sam"

    async with app.state.session_factory() as session:
        user = (await session.execute(select(User).where(User.email == "sso@example.com"))).scalar_one()
    assert user.password_hash == OIDC_PASSWORD_PLACEHOLDER

    password_login = await client.post(
        "/api/auth/login", json={"email": "sso@example.com", "password": OIDC_PASSWORD_PLACEHOLDER}
    )
    assert password_login.status_code == 401

    # A second login reuses the same account.
    again = await client.get("/api/auth/oidc/callback", params={"code": "xyz"})
    again_tokens = parse_qs(urlparse(again.headers["location"]).query)
    me_again = await client.get("/api/auth/me", headers=bearer(again_tokens["token"][0]))
    assert me_again.json()["id"] == me.json()["id"]


@pytest.mark.asyncio
async def test_callback_links_existing_account(
    app: FastAPI, client: AsyncClient, register
) -> None:
    existing = await register("both@example.com", "pw")
    await configure_oidc(app, provider({"sub": "abc", "email": "both@example.com"}))

    response = await client.get("/api/auth/oidc/callback", params={"code": "xyz"})
    tokens = parse_qs(urlparse(response.headers["location"]).query)
    me = await client.get("/api/auth/me", headers=bearer(tokens["token"][0]))
    assert me.json()["id"] == existing["user"]["id"]


@pytest.mark.asyncio
async def test_callback_links_account_despite_domain_case(
    app: FastAPI, client: AsyncClient, register
) -> None:
    existing = await register("Mixed@Example.COM", "pw")
    await configure_oidc(app, provider({"sub": "abc", "email": "Mixed@EXAMPLE.com"}))

    response = await client.get("/api/auth/oidc/callback", params={"code": "xyz"})
    tokens = parse_qs(urlparse(response.headers["location"]).query)
    me = await client.get("/api/auth/me", headers=bearer(tokens["token"][0]))
    assert me.json()["id"] == existing["user"]["id"]
    assert me.json()["email"] == "Mixed@example.com"


@pytest.mark.asyncio
async def test_callback_errors(app: FastAPI, client: AsyncClient) -> None:
    await configure_oidc(app, provider({"sub": "abc"}))

    no_code = await client.get("/api/auth/oidc/callback")
    assert no_code.status_code == 400
    assert no_code.json() == {"error": "Missing authorization code"}

    no_email = await client.get("/api/auth/oidc/callback", params={"code": "xyz"})
    assert no_email.status_code == 400
    assert no_email.json() == {"error": "Email not provided by OIDC provider"}

    await configure_oidc(app, provider({"sub": "abc", "email": "x@example.com"}, token_status=400))
    rejected = await client.get("/api/auth/oidc/callback", params={"code": "bad"})
    assert rejected.status_code == 500
    assert rejected.json() == {"error": "Token exchange failed"}
