"""
File: tests/unit/test_user_service.py
Description: 用户领域服务单元测试

本模块测试 UserService 的核心业务逻辑：
1. 正常注册 (Happy Path)
2. 业务规则校验 (邮箱重复检测 / 注册参数)
3. 密码哈希安全验证
4. 管理端状态修改与付费标记

Author: jinmozhe
Created: 2025-11-26
Updated: 2026-10-14
"""

import uuid

import pytest
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from rishta.core.exceptions import AppException
from rishta.core.security import verify_password
from rishta.db.models.user import User
from rishta.domains.users.constants import UserErrorCode
from rishta.domains.users.repository import UserRepository
from rishta.domains.users.schemas import UserCreate, UserFilter, UserStatusUpdate
from rishta.domains.users.service import UserService

# ------------------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------------------


@pytest.fixture
def user_service(db_session: AsyncSession) -> UserService:
    """
    创建一个绑定了测试 Session 的 UserService 实例。
    """
    repo = UserRepository(model=User, session=db_session)
    return UserService(repo=repo)


def _user_in(**overrides) -> UserCreate:
    data = {
        "name": "Fatima Noor",
        "email": "Fatima@Example.com",
        "phone": "+923001112233",
        "password": "karachi786",
        "confirm_password": "karachi786",
    }
    data.update(overrides)
    return UserCreate(**data)


# ------------------------------------------------------------------------------
# 注册
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_user_success(user_service: UserService) -> None:
    """测试：正常注册，默认标记全部为初始值"""
    user = await user_service.create(_user_in())

    assert user.id is not None
    assert user.email == "fatima@example.com"
    assert user.role == "user"
    assert user.is_active is True
    assert user.is_paid is False
    assert user.profile_completed is False

    # 密码必须以哈希形式保存
    assert user.hashed_password != "karachi786"
    assert verify_password("karachi786", user.hashed_password)


@pytest.mark.asyncio
async def test_create_user_duplicate_email(user_service: UserService) -> None:
    """测试：邮箱大小写不同也视为重复"""
    await user_service.create(_user_in())

    with pytest.raises(AppException) as exc_info:
        await user_service.create(_user_in(email="FATIMA@example.com", phone="03009998877"))

    assert exc_info.value.error == UserErrorCode.EMAIL_EXIST
    assert exc_info.value.http_status == 409


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "R2-D2"},
        {"phone": "12345"},
        {"password": "nodigit", "confirm_password": "nodigit"},
        {"confirm_password": "karachi787"},
        {"email": "not-an-email"},
    ],
)
def test_user_create_validation(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        _user_in(**overrides)


# ------------------------------------------------------------------------------
# 管理端
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_unknown_user(user_service: UserService) -> None:
    with pytest.raises(AppException) as exc_info:
        await user_service.get(uuid.uuid4())

    assert exc_info.value.error == UserErrorCode.USER_NOT_FOUND


@pytest.mark.asyncio
async def test_update_status_only_touches_given_fields(user_service: UserService, make_user) -> None:
    admin = await make_user(role="admin")
    user = await make_user(is_paid=True)

    updated = await user_service.update_status(user.id, UserStatusUpdate(role="admin"), admin)

    assert updated.role == "admin"
    assert updated.is_paid is True
    assert updated.is_active is True


@pytest.mark.asyncio
async def test_list_users_page_normalization(user_service: UserService, make_user) -> None:
    for _ in range(3):
        await make_user()

    page = await user_service.list_users(UserFilter(), -3)

    assert page.page == 1
    assert page.total == 3
    assert page.has_next is False


@pytest.mark.asyncio
async def test_mark_paid_is_conditional(user_service: UserService, make_user) -> None:
    user = await make_user()

    assert await user_service.repo.mark_paid(user.id) is True
    assert await user_service.repo.mark_paid(user.id) is False
    assert user.is_paid is True
