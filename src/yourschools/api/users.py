"""Users API — current user, profile edits and admin user management.

Learn: DELETE /users/:id is the administrative revocation path. It removes
the user row only; that user's sessions stay in the table and are rejected
at the user lookup stage on their next request.

The /me routes are declared before /{user_id} so "me" is never parsed as
an id. Routes:
- GET    /users/me                     → the caller
- PATCH  /users/me                     → edit username, email, zipcode, theme
- PUT    /users/me/password            → change password (old one required)
- POST   /users/me/favorites/{school}  → add a favorite school
- DELETE /users/me/favorites/{school}  → remove a favorite school
- GET    /users                        → admin: list users
- POST   /users                        → admin: create a user
- PATCH  /users/{user_id}              → admin: edit any user
- DELETE /users/{user_id}              → admin: delete a user
"""

import secrets
import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException

from yourschools.auth.context import get_credential_store, require_admin, require_user
from yourschools.auth.password import hash_password, verify_password
from yourschools.schemas.user import (
    AdminUserCreate,
    AdminUserCreated,
    AdminUserUpdate,
    PasswordChange,
    UserRead,
    UserUpdate,
)
from yourschools.services.credential_store import CredentialStore

router = APIRouter(prefix="/users")
logger = structlog.get_logger()

NOT_FOUND = "Couldn't find user with this id"


async def _apply_update(
    store: CredentialStore, user_id: uuid.UUID, fields: dict
) -> UserRead:
    if await store.identity_taken(
        fields.get("username"), fields.get("email"), exclude_id=user_id
    ):
        raise HTTPException(status_code=409, detail="Username or email already registered")

    updated = await store.update_user(user_id, **fields)
    if not updated:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return updated


# ─── Current user ────────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(user: UserRead = Depends(require_user)):
    """The authenticated caller."""
    return user


@router.patch("/me", response_model=UserRead)
async def update_me(
    body: UserUpdate,
    user: UserRead = Depends(require_user),
    store: CredentialStore = Depends(get_credential_store),
):
    updated = await _apply_update(store, user.id, body.model_dump(exclude_none=True))
    logger.info("users.updated", user_id=str(user.id), by="self")
    return updated


@router.put("/me/password")
async def change_password(
    body: PasswordChange,
    user: UserRead = Depends(require_user),
    store: CredentialStore = Depends(get_credential_store),
):
    """Change the caller's password. Existing sessions stay valid."""
    if body.password == body.new_password:
        raise HTTPException(status_code=400, detail="New password cannot be the same")

    row = await store.get_user_row(user.id)
    if not row or not verify_password(body.password, row.password_hash):
        raise HTTPException(status_code=400, detail="Incorrect password")

    await store.set_password_hash(user.id, hash_password(body.new_password))
    logger.info("users.password_changed", user_id=str(user.id))
    return {"updated": True}


@router.post("/me/favorites/{school_id}", response_model=UserRead)
async def add_favorite(
    school_id: str,
    user: UserRead = Depends(require_user),
    store: CredentialStore = Depends(get_credential_store),
):
    updated = await store.add_favorite(user.id, school_id)
    if not updated:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return updated


@router.delete("/me/favorites/{school_id}", response_model=UserRead)
async def remove_favorite(
    school_id: str,
    user: UserRead = Depends(require_user),
    store: CredentialStore = Depends(get_credential_store),
):
    updated = await store.remove_favorite(user.id, school_id)
    if not updated:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return updated


# ─── Admin ───────────────────────────────────────────────


@router.get("", response_model=list[UserRead])
async def list_users(
    _admin: UserRead = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    return await store.list_users()


@router.post("", response_model=AdminUserCreated, status_code=201)
async def create_user(
    body: AdminUserCreate,
    admin: UserRead = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    """Create an account with a generated password.

    Learn: No session is started for the new user and the admin's own
    cookie is untouched. The temporary password is returned once in the
    response body and never stored in plain text.
    """
    if await store.identity_taken(body.username, body.email):
        raise HTTPException(status_code=409, detail="Username or email already registered")

    temporary_password = secrets.token_urlsafe(12)
    user = await store.create_user(
        username=body.username,
        email=body.email,
        password_hash=hash_password(temporary_password),
        is_admin=body.is_admin,
    )
    logger.info("users.created", user_id=str(user.id), by=str(admin.id))
    return AdminUserCreated(
        user=UserRead.model_validate(user),
        temporary_password=temporary_password,
    )


@router.patch("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: uuid.UUID,
    body: AdminUserUpdate,
    admin: UserRead = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    updated = await _apply_update(store, user_id, body.model_dump(exclude_none=True))
    logger.info("users.updated", user_id=str(user_id), by=str(admin.id))
    return updated


@router.delete("/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    _admin: UserRead = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    if not await store.delete_user(user_id):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return {"deleted": True}
