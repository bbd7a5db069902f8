"""
File: tests/integration/test_admin_router.py
Description: 管理后台 HTTP 接口集成测试

验证：
1. 仪表盘统计与最近记录
2. 本月统计 / 性别分布 / 热门城市 (仅公开资料)
3. 用户列表筛选、用户详情、状态修改

Author: jinmozhe
Created: 2026-10-14
"""

import json

import pytest
from httpx import AsyncClient

from rishta.core.config import settings

API = settings.API_V1_STR

PAYMENT_FORM = {
    "amount": "3000",
    "payment_method": "easypaisa",
    "sender_name": "Usman Tariq",
    "sender_number": "03121234567",
    "reference_number": "EP556677",
}


@pytest.fixture
def seed(client: AsyncClient, make_user, headers_for, profile_data):
    """
    写入一组典型数据：
    - 2 份公开资料 (Lahore 女 / Karachi 男)
    - 1 份待审核资料 (Lahore 女)
    - 1 笔已完成付款 + 1 笔待核实付款
    """

    async def _seed():
        admin = await make_user(role="admin", name="Site Admin")
        admin_headers = headers_for(admin)

        async def create_profile(**overrides) -> str:
            owner = await make_user(is_paid=True)
            response = await client.post(
                f"{API}/profiles",
                headers=headers_for(owner),
                data={"payload": json.dumps(profile_data(**overrides))},
            )
            return response.json()["data"]["id"]

        for overrides in ({"city": "Lahore"}, {"city": "Karachi", "gender": "male"}):
            profile_id = await create_profile(**overrides)
            await client.post(
                f"{API}/admin/profiles/{profile_id}/review",
                headers=admin_headers,
                json={"action": "approve"},
            )
        await create_profile(city="Lahore")

        payer = await make_user(name="Paying User")
        waiting = await make_user(name="Waiting User")
        paid = await client.post(f"{API}/payments", headers=headers_for(payer), data=PAYMENT_FORM)
        await client.post(f"{API}/payments", headers=headers_for(waiting), data=PAYMENT_FORM)
        await client.post(
            f"{API}/admin/payments/{paid.json()['data']['id']}/verify",
            headers=admin_headers,
            json={"status": "completed"},
        )
        return admin, payer

    return _seed


@pytest.mark.asyncio
async def test_dashboard(client: AsyncClient, seed, headers_for) -> None:
    admin, _ = await seed()

    response = await client.get(f"{API}/admin/dashboard", headers=headers_for(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["stats"] == {
        "total_users": 6,
        "paid_users": 4,
        "submitted_profiles": 1,
        "approved_profiles": 2,
        "public_profiles": 2,
        "pending_payments": 1,
    }
    assert len(data["recent_users"]) == 5
    assert data["recent_users"][0]["name"] == "Waiting User"
    assert len(data["recent_profiles"]) == 3
    assert len(data["recent_payments"]) == 2


@pytest.mark.asyncio
async def test_analytics(client: AsyncClient, seed, headers_for) -> None:
    admin, _ = await seed()

    response = await client.get(f"{API}/admin/analytics", headers=headers_for(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["this_month"] == {
        "new_users": 6,
        "new_profiles": 3,
        "completed_payments": 1,
        "revenue": 3000,
    }
    # 待审核资料不计入分布
    assert {bucket["label"]: bucket["count"] for bucket in data["gender_distribution"]} == {
        "female": 1,
        "male": 1,
    }
    assert sorted(bucket["label"] for bucket in data["top_cities"]) == ["Karachi", "Lahore"]
    assert all(bucket["count"] == 1 for bucket in data["top_cities"])


@pytest.mark.asyncio
async def test_admin_endpoints_require_admin(client: AsyncClient, make_user, headers_for) -> None:
    user = await make_user(is_paid=True)

    for path in ("/admin/dashboard", "/admin/analytics", "/admin/users"):
        response = await client.get(f"{API}{path}", headers=headers_for(user))
        assert response.status_code == 403
        assert response.json()["kind"] == "unauthorized"

    anonymous = await client.get(f"{API}/admin/dashboard")
    assert anonymous.status_code == 401


@pytest.mark.asyncio
async def test_list_users_with_filters(client: AsyncClient, make_user, headers_for) -> None:
    admin = await make_user(role="admin")
    await make_user(name="Zainab Ali", email="zainab@example.com", is_paid=True)
    await make_user(name="Hamza Ali", email="hamza@example.com")

    paid = await client.get(
        f"{API}/admin/users", headers=headers_for(admin), params={"is_paid": "true"}
    )
    search = await client.get(
        f"{API}/admin/users", headers=headers_for(admin), params={"search": "HAMZA"}
    )

    assert paid.status_code == 200
    assert [item["email"] for item in paid.json()["data"]["items"]] == ["zainab@example.com"]
    assert [item["email"] for item in search.json()["data"]["items"]] == ["hamza@example.com"]


@pytest.mark.asyncio
async def test_user_detail(client: AsyncClient, seed, headers_for) -> None:
    admin, payer = await seed()

    response = await client.get(f"{API}/admin/users/{payer.id}", headers=headers_for(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["id"] == str(payer.id)
    assert data["user"]["is_paid"] is True
    assert data["profile"] is None
    assert [payment["status"] for payment in data["payments"]] == ["completed"]


@pytest.mark.asyncio
async def test_user_detail_not_found(client: AsyncClient, make_user, headers_for) -> None:
    admin = await make_user(role="admin")

    response = await client.get(
        f"{API}/admin/users/0192f5e0-0000-7000-8000-000000000000", headers=headers_for(admin)
    )

    assert response.status_code == 404
    assert response.json()["code"] == "users.not_found"


@pytest.mark.asyncio
async def test_update_user_status(client: AsyncClient, make_user, headers_for) -> None:
    admin = await make_user(role="admin")
    user = await make_user(email="to-disable@example.com")

    response = await client.patch(
        f"{API}/admin/users/{user.id}/status",
        headers=headers_for(admin),
        json={"is_active": False},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_active"] is False
    assert data["is_paid"] is False
    assert data["role"] == "user"

    # 停用后原 Token 立即失效
    me = await client.get(f"{API}/users/me", headers=headers_for(user))
    assert me.status_code == 401

    login = await client.post(
        f"{API}/auth/login", json={"email": "to-disable@example.com", "password": "secret123"}
    )
    assert login.status_code == 403
