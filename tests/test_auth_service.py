from datetime import timedelta

import pytest
import pytest_asyncio

from folio_blog.services.auth_service import (
    auth_service,
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from folio_blog.utils.errors import InvalidCredentials, Unauthorized, ValidationError


@pytest_asyncio.fixture
async def admin(fake_db):
    await auth_service.ensure_admin("admin", "admin123")
    return await fake_db.get_collection("users").find_one({"username": "admin"})


def test_password_hash_roundtrip():
    hashed = get_password_hash("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_rejects_garbage_hash():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_token_roundtrip_carries_identity():
    token = create_access_token({"userId": "abc123", "username": "admin"})
    payload = decode_access_token(token)
    assert payload["userId"] == "abc123"
    assert payload["username"] == "admin"
    assert "exp" in payload


@pytest.mark.parametrize("token", [None, "", "not.a.jwt"])
def test_decode_rejects_missing_or_malformed_tokens(token):
    with pytest.raises(Unauthorized):
        decode_access_token(token)


def test_decode_rejects_expired_token():
    token = create_access_token({"userId": "abc123", "username": "admin"}, expires_delta=timedelta(seconds=-5))
    with pytest.raises(Unauthorized):
        decode_access_token(token)


def test_decode_rejects_tampered_token():
    token = create_access_token({"userId": "abc123", "username": "admin"})
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])
    with pytest.raises(Unauthorized):
        decode_access_token(tampered)


@pytest.mark.asyncio
async def test_login_returns_token_and_redacted_user(admin):
    result = await auth_service.login("admin", "admin123")

    assert result["user"] == {"id": str(admin["_id"]), "username": "admin", "avatar": None, "role": "admin"}
    assert "password" not in result["user"]
    assert decode_access_token(result["token"])["userId"] == str(admin["_id"])


@pytest.mark.asyncio
async def test_login_wrong_password_issues_no_token(admin):
    with pytest.raises(InvalidCredentials):
        await auth_service.login("admin", "wrong-password")


@pytest.mark.asyncio
async def test_login_unknown_user(fake_db):
    with pytest.raises(InvalidCredentials):
        await auth_service.login("nobody", "admin123")


@pytest.mark.asyncio
async def test_login_requires_both_fields(fake_db):
    with pytest.raises(ValidationError):
        await auth_service.login("admin", None)


@pytest.mark.asyncio
async def test_resolve_token_for_deleted_user(admin, fake_db):
    token = create_access_token({"userId": str(admin["_id"]), "username": "admin"})
    await fake_db.get_collection("users").delete_many({})
    with pytest.raises(Unauthorized):
        await auth_service.resolve_token(token)


@pytest.mark.asyncio
async def test_change_password_with_wrong_old_password_keeps_hash(admin, fake_db):
    with pytest.raises(InvalidCredentials):
        await auth_service.change_password(admin["_id"], "not-the-password", "newpassword")

    stored = await fake_db.get_collection("users").find_one({"_id": admin["_id"]})
    assert stored["password"] == admin["password"]


@pytest.mark.asyncio
async def test_change_password_rejects_short_password(admin):
    with pytest.raises(ValidationError):
        await auth_service.change_password(admin["_id"], "admin123", "12345")


@pytest.mark.asyncio
async def test_change_password_rotates_credential(admin):
    await auth_service.change_password(admin["_id"], "admin123", "brand-new-pass")

    with pytest.raises(InvalidCredentials):
        await auth_service.login("admin", "admin123")
    assert (await auth_service.login("admin", "brand-new-pass"))["user"]["username"] == "admin"


@pytest.mark.asyncio
async def test_ensure_admin_is_idempotent(fake_db):
    assert await auth_service.ensure_admin("admin", "admin123") is True
    assert await auth_service.ensure_admin("admin", "other") is False
    assert len(fake_db.get_collection("users").documents) == 1
