"""Auth API — registration, login, logout.

Learn: These routes are the producers of sessions. Each successful
register/login issues one token, inserts exactly one Session row bound
to it, and sets the session cookie. Logout removes the row and the
cookie. Routes:
- POST /auth/register → create account, start a session
- POST /auth/login → email/password → new session (or reuse current one)
- POST /auth/logout → end the session named by the cookie
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from yourschools.auth.config import AuthConfig
from yourschools.auth.context import (
    RequestContext,
    get_auth_config,
    get_credential_store,
    get_request_context,
    get_token_codec,
)
from yourschools.auth.cookies import clear_session_cookie, set_session_cookie
from yourschools.auth.password import hash_password, verify_password
from yourschools.auth.tokens import TokenCodec
from yourschools.schemas.user import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserRead,
)
from yourschools.services.credential_store import CredentialStore

router = APIRouter(prefix="/auth")
logger = structlog.get_logger()


async def _start_session(
    user,
    response: Response,
    store: CredentialStore,
    codec: TokenCodec,
    config: AuthConfig,
) -> str:
    token = codec.issue(user)
    await store.insert_session(user.id, token)
    set_session_cookie(response, token, config)
    return token


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
    codec: TokenCodec = Depends(get_token_codec),
    config: AuthConfig = Depends(get_auth_config),
):
    """Create a new user account and log it in."""
    if await store.identity_taken(body.username, body.email):
        raise HTTPException(status_code=409, detail="Username or email already registered")

    user = await store.create_user(
        username=body.username,
        email=body.email,
        password_hash=hash_password(body.password),
    )
    token = await _start_session(user, response, store, codec, config)

    logger.info("auth.registered", user_id=str(user.id))
    return AuthResponse(token=token, user=UserRead.model_validate(user))


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    store: CredentialStore = Depends(get_credential_store),
    codec: TokenCodec = Depends(get_token_codec),
    config: AuthConfig = Depends(get_auth_config),
):
    """Login with email and password → session cookie.

    Learn: A caller that already holds a valid session gets it back
    unchanged; no second session is created for the same cookie.
    """
    if ctx.user and ctx.token:
        return AuthResponse(token=ctx.token, user=ctx.user)

    user = await store.find_user_by_email(body.email)
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Incorrect credentials")

    token = await _start_session(user, response, store, codec, config)

    logger.info("auth.login", user_id=str(user.id))
    return AuthResponse(token=token, user=UserRead.model_validate(user))


# ─── Logout ──────────────────────────────────────────────


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
    config: AuthConfig = Depends(get_auth_config),
):
    """End the session named by the cookie. Safe to call repeatedly.

    Learn: This route reads the cookie itself instead of depending on
    get_request_context, so a stale or already-revoked token can still
    be logged out without a 401.
    """
    token = request.cookies.get(config.cookie_name)
    removed = 0
    if token:
        removed = await store.delete_session_by_token(token)

    clear_session_cookie(response, config)
    logger.info("auth.logout", sessions_removed=removed)
    return {"logged_out": True}
