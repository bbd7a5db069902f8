"""
File: tests/integration/test_auth_router.py
Description: 认证领域 HTTP 接口集成测试

验证：
1. 注册 (201 / 邮箱冲突 / 参数校验)
2. 登录 (next_step 引导 / 凭证错误 / 账号停用)
3. Refresh Token 旋转与登出
4. 受保护接口的 401 响应

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-14
"""

import pytest
from httpx import AsyncClient

from rishta.core.config import settings

API = settings.API_V1_STR
PASSWORD = "secret123"


def _register_payload(**overrides) -> dict:
    payload = {
        "name": "Bilal Ahmed",
        "email": "Bilal@Example.com",
        "phone": "03211234567",
        "password": "pakistan1",
        "confirm_password": "pakistan1",
    }
    payload.update(overrides)
    return payload


async def _login(client: AsyncClient, email: str, password: str = PASSWORD):
    return await client.post(f"{API}/auth/login", json={"email": email, "password": password})


# ------------------------------------------------------------------------------
# 注册
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_register(client: AsyncClient) -> None:
    response = await client.post(f"{API}/auth/register", json=_register_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["code"] == "success"
    assert body["request_id"] == response.headers.get("X-Request-ID")

    user = body["data"]
    assert user["email"] == "bilal@example.com"
    assert user["role"] == "user"
    assert user["is_paid"] is False
    assert user["profile_completed"] is False
    assert "hashed_password" not in user
    assert "password" not in user


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient) -> None:
    first = await client.post(f"{API}/auth/register", json=_register_payload())
    assert first.status_code == 201

    response = await client.post(
        f"{API}/auth/register", json=_register_payload(email="bilal@example.com", phone="03337654321")
    )

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "users.email_exist"
    assert body["kind"] == "conflict"


@pytest.mark.asyncio
async def test_register_validation_errors(client: AsyncClient) -> None:
    response = await client.post(
        f"{API}/auth/register",
        json=_register_payload(password="nodigits", confirm_password="nodigits", phone="12"),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "system.invalid_params"
    assert body["kind"] == "validation_error"
    fields = {error["field"] for error in body["data"]["errors"]}
    assert {"password", "phone"} <= fields


@pytest.mark.asyncio
async def test_register_password_mismatch(client: AsyncClient) -> None:
    response = await client.post(
        f"{API}/auth/register", json=_register_payload(confirm_password="different1")
    )

    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


# ------------------------------------------------------------------------------
# 登录
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_login_next_step_follows_account_state(client: AsyncClient, make_user, db_session) -> None:
    unpaid = await make_user(email="unpaid@example.com")
    paid = await make_user(email="paid@example.com", is_paid=True)
    done = await make_user(email="done@example.com", is_paid=True)
    done.profile_completed = True
    await db_session.commit()

    unpaid_res = await _login(client, "unpaid@example.com")
    paid_res = await _login(client, "PAID@example.com")
    done_res = await _login(client, "done@example.com")

    assert unpaid_res.status_code == 200
    token = unpaid_res.json()["data"]
    assert token["token_type"] == "bearer"
    assert token["access_token"]
    assert token["refresh_token"]
    assert token["expires_in"] > 0
    assert token["next_step"] == "payment"

    assert paid_res.json()["data"]["next_step"] == "profile"
    assert done_res.json()["data"]["next_step"] == "dashboard"
    assert unpaid.last_login_at is not None
    assert paid.last_login_at is not None


@pytest.mark.asyncio
async def test_login_with_wrong_password(client: AsyncClient, make_user) -> None:
    await make_user(email="someone@example.com")

    wrong_password = await _login(client, "someone@example.com", "wrong-pass1")
    unknown_email = await _login(client, "nobody@example.com")

    for response in (wrong_password, unknown_email):
        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "auth.invalid_credentials"
        assert body["kind"] == "unauthenticated"
    assert wrong_password.json()["message"] == unknown_email.json()["message"]


@pytest.mark.asyncio
async def test_login_inactive_account(client: AsyncClient, make_user) -> None:
    await make_user(email="blocked@example.com", is_active=False)

    response = await _login(client, "blocked@example.com")

    assert response.status_code == 403
    assert response.json()["code"] == "auth.account_disabled"


# ------------------------------------------------------------------------------
# Refresh / Logout
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_refresh_token_rotation(client: AsyncClient, make_user) -> None:
    await make_user(email="rotate@example.com")
    login_res = await _login(client, "rotate@example.com")
    old_refresh = login_res.json()["data"]["refresh_token"]

    refresh_res = await client.post(f"{API}/auth/refresh", json={"refresh_token": old_refresh})

    assert refresh_res.status_code == 200
    new_token = refresh_res.json()["data"]
    assert new_token["refresh_token"] != old_refresh
    assert new_token["next_step"] == "payment"

    # 旧 Refresh Token 已失效
    replay = await client.post(f"{API}/auth/refresh", json={"refresh_token": old_refresh})
    assert replay.status_code == 401
    assert replay.json()["code"] == "auth.refresh_token_invalid"

    me = await client.get(
        f"{API}/users/me", headers={"Authorization": f"Bearer {new_token['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "rotate@example.com"


@pytest.mark.asyncio
async def test_logout_revokes_refresh_token(client: AsyncClient, make_user) -> None:
    await make_user(email="bye@example.com")
    refresh = (await _login(client, "bye@example.com")).json()["data"]["refresh_token"]

    logout_res = await client.post(f"{API}/auth/logout", json={"refresh_token": refresh})
    assert logout_res.status_code == 200
    assert logout_res.json()["data"] is None

    response = await client.post(f"{API}/auth/refresh", json={"refresh_token": refresh})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_for_deactivated_user(client: AsyncClient, make_user, db_session) -> None:
    user = await make_user(email="later-blocked@example.com")
    refresh = (await _login(client, "later-blocked@example.com")).json()["data"]["refresh_token"]

    user.is_active = False
    await db_session.commit()

    response = await client.post(f"{API}/auth/refresh", json={"refresh_token": refresh})

    assert response.status_code == 403
    assert response.json()["code"] == "auth.account_disabled"


# ------------------------------------------------------------------------------
# 受保护接口
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient) -> None:
    missing = await client.get(f"{API}/users/me")
    garbage = await client.get(f"{API}/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    wrong_scheme = await client.get(f"{API}/users/me", headers={"Authorization": "Basic abc"})

    assert missing.status_code == 401
    assert missing.json()["code"] == "system.unauthorized"
    assert missing.json()["kind"] == "unauthenticated"
    assert garbage.status_code == 401
    assert garbage.json()["code"] == "system.token_expired"
    assert wrong_scheme.status_code == 401


@pytest.mark.asyncio
async def test_me_returns_current_user(client: AsyncClient, make_user, headers_for) -> None:
    user = await make_user(email="me@example.com", is_paid=True)

    response = await client.get(f"{API}/users/me", headers=headers_for(user))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == str(user.id)
    assert data["is_paid"] is True
