"""Per-request auth context — FastAPI dependencies.

Learn: get_request_context runs once per request and is the single entry
point into the auth core. It reads the session cookie, runs the
SessionValidator, and returns a RequestContext that downstream handlers
use instead of touching cookies or tokens themselves.

Any rejection clears the session cookie and answers 401 with one fixed
message, whichever stage failed. The stage is logged, never returned.

Two stricter dependencies build on it:
1. require_user  → 401 for anonymous callers
2. require_admin → 403 for non-admin users
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from yourschools.auth.config import AuthConfig
from yourschools.auth.cookies import clear_cookie_headers
from yourschools.auth.session import NotAuthorized, SessionValidator
from yourschools.auth.tokens import TokenCodec
from yourschools.db.engine import get_db
from yourschools.schemas.user import UserRead
from yourschools.services.credential_store import CredentialStore

logger = structlog.get_logger()


@dataclass
class RequestContext:
    """What every handler sees: the caller (or None) plus transport handles."""

    req: Request
    res: Response
    user: Optional[UserRead] = None
    token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def get_auth_config(request: Request) -> AuthConfig:
    return request.app.state.auth_config


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_credential_store(
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> CredentialStore:
    """Per-request store, with session lifetime taken from the app's AuthConfig."""
    return CredentialStore(db, session_lifetime=config.session_lifetime)


async def get_request_context(
    request: Request,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
) -> RequestContext:
    """Resolve the session cookie to a RequestContext, or fail with 401."""
    config = get_auth_config(request)
    token = request.cookies.get(config.cookie_name)

    validator = SessionValidator(get_token_codec(request), store)
    try:
        user = await validator.authenticate(token)
    except NotAuthorized as e:
        logger.info("auth.rejected", reason=e.reason.value, detail=e.detail)
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers=_clear_cookie_or_none(config),
        ) from e

    return RequestContext(
        req=request, res=response, user=user, token=token if user else None
    )


def _clear_cookie_or_none(config: AuthConfig) -> Optional[dict[str, str]]:
    """Best-effort cookie clearing; a failure here must not mask the 401."""
    try:
        return clear_cookie_headers(config)
    except Exception as e:
        logger.warning("auth.clear_cookie_failed", error=str(e))
        return None


async def require_user(
    ctx: RequestContext = Depends(get_request_context),
) -> UserRead:
    if not ctx.is_authenticated:
        raise HTTPException(status_code=401, detail="You need to be logged in")
    return ctx.user


async def require_admin(user: UserRead = Depends(require_user)) -> UserRead:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="You need to be an admin")
    return user
