"""Session validator + credential store tests.

Learn: Exercises the state machine directly against the store, without
HTTP. Each rejection path is checked for its internal reason, and the
public authenticate() form is checked to hide that reason.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from yourschools.auth.session import (
    NOT_AUTHORIZED,
    Anonymous,
    AuthFailure,
    Authenticated,
    NotAuthorized,
    Rejected,
    SessionValidator,
)
from yourschools.auth.tokens import TokenCodec
from yourschools.db.models import Session

from conftest import TEST_AUTH_CONFIG


async def _logged_in(store, codec, user):
    token = codec.issue(user)
    await store.insert_session(user.id, token)
    return token


async def _session_count(db_session) -> int:
    result = await db_session.execute(select(func.count()).select_from(Session))
    return result.scalar_one()


# ═══════════════════════════════════════════════════════════
# State machine
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, ""])
async def test_no_token_is_anonymous(store, codec, token):
    result = await SessionValidator(codec, store).validate(token)
    assert result == Anonymous()


@pytest.mark.asyncio
async def test_valid_session_authenticates(store, codec, make_user):
    user = await make_user("alice")
    token = await _logged_in(store, codec, user)

    result = await SessionValidator(codec, store).validate(token)

    assert isinstance(result, Authenticated)
    assert result.user.id == user.id
    assert result.user.username == "alice"
    assert result.token == token
    assert "password_hash" not in result.user.model_dump()


@pytest.mark.asyncio
async def test_foreign_signature_rejected(store, codec, make_user):
    user = await make_user()
    forged = TokenCodec(replace(TEST_AUTH_CONFIG, secret="x" * 40)).issue(user)
    await store.insert_session(user.id, forged)

    result = await SessionValidator(codec, store).validate(forged)

    assert isinstance(result, Rejected)
    assert result.reason == AuthFailure.TOKEN_NOT_VERIFIED


@pytest.mark.asyncio
async def test_expired_token_rejected_even_with_session(store, make_user):
    user = await make_user()
    stale = TokenCodec(replace(TEST_AUTH_CONFIG, token_expiration=timedelta(seconds=-1)))
    token = stale.issue(user)
    await store.insert_session(user.id, token)

    result = await SessionValidator(TokenCodec(TEST_AUTH_CONFIG), store).validate(token)

    assert result.reason == AuthFailure.TOKEN_NOT_VERIFIED


@pytest.mark.asyncio
async def test_token_without_session_rejected(store, codec, make_user):
    user = await make_user()
    token = codec.issue(user)  # never stored

    result = await SessionValidator(codec, store).validate(token)

    assert result.reason == AuthFailure.SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_deleted_session_rejected(store, codec, make_user):
    """Logout-then-reuse: the token still verifies, the session is gone."""
    user = await make_user()
    token = await _logged_in(store, codec, user)
    await store.delete_session_by_token(token)

    codec.verify(token)  # still cryptographically fine
    result = await SessionValidator(codec, store).validate(token)

    assert result.reason == AuthFailure.SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_expired_session_treated_as_missing(store, codec, make_user):
    user = await make_user()
    token = codec.issue(user)
    four_hours_ago = datetime.now(timezone.utc) - timedelta(hours=4)
    await store.insert_session(user.id, token, now=four_hours_ago)

    assert await store.find_session_by_token(token) is None
    result = await SessionValidator(codec, store).validate(token)
    assert result.reason == AuthFailure.SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_deleted_user_rejected(store, codec, make_user):
    user = await make_user()
    token = await _logged_in(store, codec, user)
    assert await store.delete_user(user.id) is True

    result = await SessionValidator(codec, store).validate(token)

    assert result.reason == AuthFailure.USER_NOT_AUTHORIZED


# ═══════════════════════════════════════════════════════════
# Public boundary
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_authenticate_hides_failure_stage(store, codec, make_user):
    user = await make_user()
    unstored = codec.issue(user)
    validator = SessionValidator(codec, store)

    with pytest.raises(NotAuthorized) as bad_sig:
        await validator.authenticate("garbage")
    with pytest.raises(NotAuthorized) as no_session:
        await validator.authenticate(unstored)

    assert str(bad_sig.value) == str(no_session.value) == NOT_AUTHORIZED
    assert bad_sig.value.reason != no_session.value.reason


@pytest.mark.asyncio
async def test_authenticate_anonymous_returns_none(store, codec):
    assert await SessionValidator(codec, store).authenticate(None) is None


# ═══════════════════════════════════════════════════════════
# Store semantics
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_session_expiry_is_fixed_offset(store, codec, make_user):
    user = await make_user()
    now = datetime.now(timezone.utc)
    session = await store.insert_session(user.id, codec.issue(user), now=now)
    assert session.expires_at - session.created_at == timedelta(hours=3)


@pytest.mark.asyncio
async def test_delete_missing_session_is_noop(store, codec, make_user, db_session):
    user = await make_user()
    await _logged_in(store, codec, user)
    before = await _session_count(db_session)

    assert await store.delete_session_by_token("no-such-token") == 0
    assert await _session_count(db_session) == before


@pytest.mark.asyncio
async def test_double_delete_is_noop(store, codec, make_user):
    user = await make_user()
    token = await _logged_in(store, codec, user)

    assert await store.delete_session_by_token(token) == 1
    assert await store.delete_session_by_token(token) == 0


@pytest.mark.asyncio
async def test_concurrent_sessions_are_independent(store, codec, make_user):
    user = await make_user()
    phone = await _logged_in(store, codec, user)
    laptop = await _logged_in(store, codec, user)
    validator = SessionValidator(codec, store)

    assert phone != laptop
    await store.delete_session_by_token(phone)

    assert (await validator.validate(phone)).reason == AuthFailure.SESSION_NOT_FOUND
    assert isinstance(await validator.validate(laptop), Authenticated)


@pytest.mark.asyncio
async def test_find_user_with_malformed_id(store):
    assert await store.find_user_by_id("not-a-uuid") is None
