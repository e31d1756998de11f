"""Session cookie policy.

One policy for every call site: http-only, secure, SameSite=None (the
frontend is served from a different origin), lifetime equal to the
session lifetime. Clearing uses the same attributes so browsers match
and drop the original cookie.
"""

from starlette.responses import Response

from yourschools.auth.config import AuthConfig


def set_session_cookie(response: Response, token: str, config: AuthConfig) -> None:
    response.set_cookie(
        key=config.cookie_name,
        value=token,
        max_age=int(config.session_lifetime.total_seconds()),
        path="/",
        httponly=True,
        secure=config.cookie_secure,
        samesite=config.cookie_samesite,
    )


def clear_session_cookie(response: Response, config: AuthConfig) -> None:
    response.delete_cookie(
        key=config.cookie_name,
        path="/",
        httponly=True,
        secure=config.cookie_secure,
        samesite=config.cookie_samesite,
    )


def clear_cookie_headers(config: AuthConfig) -> dict[str, str]:
    """Headers that clear the session cookie, for attaching to error responses."""
    scratch = Response()
    clear_session_cookie(scratch, config)
    return {"set-cookie": scratch.headers["set-cookie"]}
