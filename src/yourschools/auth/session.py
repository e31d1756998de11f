"""Session validation — resolves a presented token to an identity.

Learn: validate() is a small state machine. Each stage returns a tagged
result instead of raising, so the caller sees exactly one of:

    no token                         → Anonymous
    token fails verify()             → Rejected(TOKEN_NOT_VERIFIED)
    no live session for the token    → Rejected(SESSION_NOT_FOUND)
    session's user no longer exists  → Rejected(USER_NOT_AUTHORIZED)
    otherwise                        → Authenticated(user)

The reason inside Rejected is for logs only. At the HTTP boundary every
rejection collapses into the same NotAuthorized error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from yourschools.auth.tokens import InvalidToken, TokenCodec
from yourschools.schemas.user import UserRead
from yourschools.services.credential_store import CredentialStore

NOT_AUTHORIZED = "User Not Authorized"


class AuthFailure(str, Enum):
    TOKEN_NOT_VERIFIED = "token_not_verified"
    SESSION_NOT_FOUND = "session_not_found"
    USER_NOT_AUTHORIZED = "user_not_authorized"


class NotAuthorized(Exception):
    """Opaque authentication failure. `reason` is for diagnostics, not callers."""

    def __init__(self, reason: AuthFailure, detail: str = ""):
        super().__init__(NOT_AUTHORIZED)
        self.reason = reason
        self.detail = detail


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Authenticated:
    user: UserRead
    token: str


@dataclass(frozen=True)
class Rejected:
    reason: AuthFailure
    detail: str = ""

    def to_error(self) -> NotAuthorized:
        return NotAuthorized(self.reason, self.detail)


ValidationResult = Union[Anonymous, Authenticated, Rejected]


class SessionValidator:
    """Token + session + user checks for one presented token."""

    def __init__(self, codec: TokenCodec, store: CredentialStore):
        self.codec = codec
        self.store = store

    async def validate(self, token: Optional[str]) -> ValidationResult:
        if not token:
            return Anonymous()

        try:
            self.codec.verify(token)
        except InvalidToken as e:
            return Rejected(AuthFailure.TOKEN_NOT_VERIFIED, str(e))

        session = await self.store.find_session_by_token(token)
        if session is None:
            return Rejected(AuthFailure.SESSION_NOT_FOUND, "no live session for token")

        user = await self.store.find_user_by_id(session.user_id)
        if user is None:
            return Rejected(
                AuthFailure.USER_NOT_AUTHORIZED, f"user {session.user_id} not found"
            )

        return Authenticated(user=user, token=token)

    async def authenticate(self, token: Optional[str]) -> Optional[UserRead]:
        """Public form of validate(): the user, None when anonymous, or NotAuthorized."""
        result = await self.validate(token)
        if isinstance(result, Rejected):
            raise result.to_error()
        if isinstance(result, Authenticated):
            return result.user
        return None
