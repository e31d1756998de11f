"""Immutable auth configuration.

Learn: Settings is the mutable, env-driven view of configuration. The auth
core never reads it directly; create_app() freezes the relevant values into
an AuthConfig once, and that value is handed to TokenCodec, CredentialStore
and the cookie helpers.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from yourschools.config import Settings


@dataclass(frozen=True)
class AuthConfig:
    secret: str
    algorithm: str = "HS256"
    token_expiration: timedelta = timedelta(hours=3)
    max_age: Optional[timedelta] = None
    session_lifetime: timedelta = timedelta(hours=3)
    cookie_name: str = "token"
    cookie_secure: bool = True
    cookie_samesite: str = "none"

    @property
    def token_max_age(self) -> timedelta:
        """Oldest `iat` a token may carry and still verify."""
        return self.max_age if self.max_age is not None else self.token_expiration

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthConfig":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            token_expiration=settings.jwt_expiration,
            max_age=settings.jwt_max_age,
            session_lifetime=settings.session_lifetime,
            cookie_name=settings.cookie_name,
            cookie_secure=settings.cookie_secure,
            cookie_samesite=settings.cookie_samesite,
        )
