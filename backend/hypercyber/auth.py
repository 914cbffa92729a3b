"""Authentication routes and helpers."""
import logging
import uuid
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .dependencies import (
    get_app_settings,
    get_current_user_id,
    get_db_session,
    get_http_client,
    get_token_service,
)
from .errors import BadRequest, Conflict, InvalidToken, NotFound, Unauthorized
from .models import User, utc_now
from .oidc import OidcClient, resolve_oidc_user
from .schemas import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserInfo,
)
from .tokens import REFRESH_TOKEN, TokenService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Use PBKDF2-SHA256 instead of bcrypt to avoid bcrypt backend issues
password_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return password_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against the stored hash.

    Unrecognised hashes (such as the OIDC placeholder) never verify.
    """
    try:
        return password_context.verify(password, password_hash)
    except ValueError:
        return False


def auth_response(user: User, tokens: TokenService) -> AuthResponse:
    return AuthResponse(
        token=tokens.issue_access_token(user.id, user.email),
        refresh_token=tokens.issue_refresh_token(user.id, user.email),
        user=UserInfo.model_validate(user),
    )


async def find_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def active_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await session.execute(
        select(User).where(User.id == user_id, User.is_active.is_(True))
    )
    return result.scalar_one_or_none()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Create a user account and log it in."""

    if await find_user_by_email(session, payload.email) is not None:
        raise Conflict("User already exists")

    now = utc_now()
    user = User(
        id=uuid.uuid4(),
        email=payload.email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        # A concurrent registration won the unique index on users.email.
        await session.rollback()
        raise Conflict("User already exists") from exc
    logger.info("Registered user %s", user.id)
    return auth_response(user, tokens)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Authenticate a user and return access and refresh tokens."""

    result = await session.execute(
        select(User).where(User.email == payload.email, User.is_active.is_(True))
    )
    user = result.scalar_one_or_none()
    # Unknown email and wrong password look the same to the caller.
    if user is None or not verify_password(payload.password, user.password_hash):
        raise Unauthorized("Invalid credentials")

    return auth_response(user, tokens)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    payload: RefreshRequest,
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    """Exchange a refresh token for a new access token."""

    try:
        claims = tokens.verify(payload.refresh_token, expected_type=REFRESH_TOKEN)
    except InvalidToken as exc:
        raise Unauthorized("Invalid refresh token") from exc

    user = await active_user(session, claims.user_id)
    if user is None:
        raise Unauthorized("User not found")
    return TokenResponse(token=tokens.issue_access_token(user.id, user.email))


@router.get("/me", response_model=UserInfo)
async def me(
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """Return the authenticated user's profile."""

    user = await active_user(session, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("/oidc/authorize", status_code=status.HTTP_302_FOUND)
async def oidc_authorize(
    settings: Settings = Depends(get_app_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> RedirectResponse:
    """Send the browser to the identity provider's login page."""

    client = OidcClient(settings, http)
    discovery = await client.discover()
    return RedirectResponse(client.authorization_url(discovery), status_code=status.HTTP_302_FOUND)


@router.get("/oidc/callback", status_code=status.HTTP_302_FOUND)
async def oidc_callback(
    code: str | None = None,
    settings: Settings = Depends(get_app_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> RedirectResponse:
    """Finish the code flow and hand the tokens to the frontend."""

    if not code:
        raise BadRequest("Missing authorization code")

    client = OidcClient(settings, http)
    userinfo = await client.authenticate(code)
    user = await resolve_oidc_user(session, userinfo)

    query = urlencode(
        {
            "token": tokens.issue_access_token(user.id, user.email),
            "refresh_token": tokens.issue_refresh_token(user.id, user.email),
        }
    )
    redirect_url = f"{settings.frontend_url.rstrip('/')}/auth/callback?{query}"
    return RedirectResponse(redirect_url, status_code=status.HTTP_302_FOUND)
