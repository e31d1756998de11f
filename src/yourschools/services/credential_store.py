"""Credential store — user and session records for the auth core.

Learn: This is the only place the auth core touches the database.
Every method is a single awaited statement (plus commit for writes);
there are no retry loops, so a failed lookup is a terminal failure for
the request that made it.

Session expiry is enforced here, at lookup time: a row whose expires_at
is not in the future is treated exactly like a missing row.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from yourschools.db.models import Session, User
from yourschools.schemas.user import UserRead

SESSION_LIFETIME = timedelta(hours=3)


def _as_uuid(value: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class CredentialStore:
    """Lookups, inserts and deletes over users and sessions."""

    def __init__(self, db: AsyncSession, session_lifetime: timedelta = SESSION_LIFETIME):
        self.db = db
        self.session_lifetime = session_lifetime

    # ─── Sessions ───────────────────────────────────────

    async def find_session_by_token(
        self, token: str, now: Optional[datetime] = None
    ) -> Optional[Session]:
        """Return the live session for a token, or None if missing or expired."""
        now = now or datetime.now(timezone.utc)
        result = await self.db.execute(
            select(Session)
            .where(Session.token == token, Session.expires_at > now)
            .limit(1)
        )
        return result.scalars().first()

    async def insert_session(
        self, user_id: uuid.UUID, token: str, now: Optional[datetime] = None
    ) -> Session:
        """Create one session row. Duplicates per user are allowed (multi-device)."""
        now = now or datetime.now(timezone.utc)
        session = Session(
            user_id=user_id,
            token=token,
            created_at=now,
            expires_at=now + self.session_lifetime,
        )
        self.db.add(session)
        await self.db.commit()
        return session

    async def delete_session_by_token(self, token: str) -> int:
        """Delete sessions holding this token. Returns rows removed; 0 is not an error."""
        result = await self.db.execute(delete(Session).where(Session.token == token))
        await self.db.commit()
        return result.rowcount or 0

    # ─── Users ──────────────────────────────────────────

    async def find_user_by_id(self, user_id: Union[str, uuid.UUID]) -> Optional[UserRead]:
        """Return the user without its password hash, or None."""
        uid = _as_uuid(user_id)
        if uid is None:
            return None
        user = await self.db.get(User, uid)
        return UserRead.model_validate(user) if user else None

    async def find_user_by_email(self, email: str) -> Optional[User]:
        """Full ORM row, password hash included — for credential checks only."""
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def get_user_row(self, user_id: Union[str, uuid.UUID]) -> Optional[User]:
        """ORM row for in-place updates and password checks."""
        uid = _as_uuid(user_id)
        return await self.db.get(User, uid) if uid else None

    async def identity_taken(
        self,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """True if another user already holds this username or email."""
        clauses = []
        if username is not None:
            clauses.append(User.username == username)
        if email is not None:
            clauses.append(User.email == email)
        if not clauses:
            return False

        q = select(User.id).where(or_(*clauses))
        if exclude_id is not None:
            q = q.where(User.id != exclude_id)
        result = await self.db.execute(q.limit(1))
        return result.first() is not None

    async def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        is_admin: bool = False,
    ) -> User:
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            is_admin=is_admin,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def list_users(self) -> list[UserRead]:
        result = await self.db.execute(select(User).order_by(User.username))
        return [UserRead.model_validate(u) for u in result.scalars().all()]

    async def delete_user(self, user_id: Union[str, uuid.UUID]) -> bool:
        """Delete a user. Their sessions are left in place and fail at the user stage."""
        uid = _as_uuid(user_id)
        if uid is None:
            return False
        user = await self.db.get(User, uid)
        if not user:
            return False
        await self.db.delete(user)
        await self.db.commit()
        return True

    async def update_user(
        self, user_id: Union[str, uuid.UUID], **fields
    ) -> Optional[UserRead]:
        """Apply the given profile fields; None values are left untouched."""
        user = await self.get_user_row(user_id)
        if not user:
            return None
        for name, value in fields.items():
            if value is not None:
                setattr(user, name, value)
        await self.db.commit()
        return UserRead.model_validate(user)

    async def set_password_hash(
        self, user_id: Union[str, uuid.UUID], password_hash: str
    ) -> bool:
        user = await self.get_user_row(user_id)
        if not user:
            return False
        user.password_hash = password_hash
        await self.db.commit()
        return True

    # ─── Favorites ──────────────────────────────────────

    async def add_favorite(
        self, user_id: Union[str, uuid.UUID], school_id: str
    ) -> Optional[UserRead]:
        """Add a school id to the user's favorites. Adding twice keeps one copy."""
        user = await self.get_user_row(user_id)
        if not user:
            return None
        if school_id not in user.favorite_ids:
            # reassign so the JSON column is marked dirty
            user.favorite_ids = [*user.favorite_ids, school_id]
            await self.db.commit()
        return UserRead.model_validate(user)

    async def remove_favorite(
        self, user_id: Union[str, uuid.UUID], school_id: str
    ) -> Optional[UserRead]:
        """Remove a school id from favorites. Removing an absent id is a no-op."""
        user = await self.get_user_row(user_id)
        if not user:
            return None
        if school_id in user.favorite_ids:
            user.favorite_ids = [f for f in user.favorite_ids if f != school_id]
            await self.db.commit()
        return UserRead.model_validate(user)
