"""Signed identity tokens.

Learn: A token is a JWT (HS256 by default) whose payload is

    {"data": {"username": ..., "id": ...}, "iat": ..., "exp": ..., "jti": ...}

`jti` is random, so two tokens issued for the same user in the same second
still differ. Tokens are stateless: verify() only proves the token was
signed by us and is not too old. Whether it is still honored is the
SessionValidator's job.
"""

import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone

import jwt

from yourschools.auth.config import AuthConfig


class InvalidToken(Exception):
    """Raised when a token fails signature, structure, or age checks."""


@dataclass(frozen=True)
class Claim:
    """Decoded identity carried by a verified token."""

    id: str
    username: str


class TokenCodec:
    """Issue and verify tokens with one fixed AuthConfig."""

    def __init__(self, config: AuthConfig):
        self.config = config

    def issue(self, user) -> str:
        """Sign a token for anything exposing `id` and `username`."""
        now = datetime.now(timezone.utc)
        payload = {
            "data": {"username": user.username, "id": str(user.id)},
            "iat": now,
            "exp": now + self.config.token_expiration,
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(
            payload, self.config.secret, algorithm=self.config.algorithm
        )

    def verify(self, token: str) -> Claim:
        """Verify and decode a token.

        Returns the Claim on success.
        Raises InvalidToken on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidToken(f"Invalid token: {e}")

        age = time.time() - payload["iat"]
        if age > self.config.token_max_age.total_seconds():
            raise InvalidToken("Token exceeds maximum age")

        data = payload.get("data")
        if not isinstance(data, dict) or not data.get("id") or not data.get("username"):
            raise InvalidToken("Token carries no identity claim")

        return Claim(id=str(data["id"]), username=str(data["username"]))
