"""OpenID Connect code-flow client and local user provisioning."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .errors import BadRequest, IdentityProviderError, Unauthorized
from .models import User, utc_now
from .schemas import normalize_email

logger = logging.getLogger(__name__)

SCOPES = "openid email profile"
# Never a valid passlib hash, so password login is impossible for these users.
OIDC_PASSWORD_PLACEHOLDER = "!oidc-only"


@dataclass(frozen=True)
class OidcDiscovery:
    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    userinfo_endpoint: str


@dataclass(frozen=True)
class OidcUserInfo:
    sub: str
    email: str | None = None
    email_verified: bool | None = None
    name: str | None = None
    given_name: str | None = None
    family_name: str | None = None


class OidcClient:
    """Talks to the configured provider over httpx."""

    def __init__(self, settings: Settings, http: httpx.AsyncClient) -> None:
        if not settings.oidc_configured:
            raise BadRequest("OIDC not configured")
        self.issuer = settings.oidc_issuer.rstrip("/")
        self.client_id = settings.oidc_client_id
        self.client_secret = settings.oidc_client_secret
        self.redirect_uri = settings.oidc_redirect_uri
        self.http = http

    def _json(self, response: httpx.Response, what: str) -> dict[str, Any]:
        if response.is_error:
            logger.error("%s failed with HTTP %s: %s", what, response.status_code, response.text)
            raise IdentityProviderError(f"{what} failed")
        try:
            return response.json()
        except ValueError as exc:
            logger.error("%s returned a non-JSON body", what)
            raise IdentityProviderError(f"{what} failed") from exc

    async def discover(self) -> OidcDiscovery:
        url = f"{self.issuer}/.well-known/openid-configuration"
        try:
            response = await self.http.get(url)
        except httpx.HTTPError as exc:
            logger.error("OIDC discovery request to %s failed: %s", url, exc)
            raise IdentityProviderError("OIDC discovery failed") from exc
        document = self._json(response, "OIDC discovery")
        try:
            return OidcDiscovery(
                issuer=document.get("issuer", self.issuer),
                authorization_endpoint=document["authorization_endpoint"],
                token_endpoint=document["token_endpoint"],
                userinfo_endpoint=document["userinfo_endpoint"],
            )
        except KeyError as exc:
            logger.error("OIDC discovery document is missing %s", exc)
            raise IdentityProviderError("OIDC discovery failed") from exc

    def authorization_url(self, discovery: OidcDiscovery) -> str:
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "response_type": "code",
                "scope": SCOPES,
            }
        )
        return f"{discovery.authorization_endpoint}?{query}"

    async def exchange_code(self, code: str, discovery: OidcDiscovery) -> str:
        """Trade an authorization code for the provider's access token."""

        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            response = await self.http.post(discovery.token_endpoint, data=form)
        except httpx.HTTPError as exc:
            logger.error("Token exchange request failed: %s", exc)
            raise IdentityProviderError("Token exchange failed") from exc
        payload = self._json(response, "Token exchange")
        access_token = payload.get("access_token")
        if not access_token:
            raise IdentityProviderError("Token exchange failed")
        return access_token

    async def fetch_userinfo(self, access_token: str, discovery: OidcDiscovery) -> OidcUserInfo:
        try:
            response = await self.http.get(
                discovery.userinfo_endpoint,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as exc:
            logger.error("User info request failed: %s", exc)
            raise IdentityProviderError("Failed to get user info") from exc
        claims = self._json(response, "User info")
        if not claims.get("sub"):
            raise IdentityProviderError("Failed to get user info")
        return OidcUserInfo(
            sub=str(claims["sub"]),
            email=claims.get("email"),
            email_verified=claims.get("email_verified"),
            name=claims.get("name"),
            given_name=claims.get("given_name"),
            family_name=claims.get("family_name"),
        )

    async def authenticate(self, code: str) -> OidcUserInfo:
        discovery = await self.discover()
        access_token = await self.exchange_code(code, discovery)
        return await self.fetch_userinfo(access_token, discovery)


async def resolve_oidc_user(session: AsyncSession, userinfo: OidcUserInfo) -> User:
    """Return the local user for ``userinfo``, creating it on first login."""

    if not userinfo.email:
        raise BadRequest("Email not provided by OIDC provider")

    email = normalize_email(userinfo.email)
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is not None:
        if not user.is_active:
            raise Unauthorized("Account is disabled")
        return user

    now = utc_now()
    user = User(
        id=uuid.uuid4(),
        email=email,
        password_hash=OIDC_PASSWORD_PLACEHOLDER,
        first_name=userinfo.given_name,
        last_name=userinfo.family_name,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    session.add(user)
    await session.commit()
    logger.info("Provisioned user %s from OIDC subject %s", user.id, userinfo.sub)
    return user
