"""
File: rishta/api/deps.py
Description: 全局依赖注入定义 (DB Session + Authentication)

本模块负责：
1. 数据库会话管理 (get_db / DBSession)
2. JWT 鉴权与用户身份提取 (get_current_user / CurrentUser)
3. 权限控制 (PaidUser / AdminUser)

身份标记 (is_paid / role / profile_completed) 每次请求都从数据库重新读取，
Token 只携带 user_id，绝不信任会话中缓存的标记。

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-10 (PaidUser / AdminUser)
"""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rishta.core.error_code import SystemErrorCode
from rishta.core.exceptions import AppException
from rishta.core.security import decode_access_token
from rishta.db.models.user import User
from rishta.db.session import AsyncSessionLocal
from rishta.domains.users.constants import UserErrorCode

# ------------------------------------------------------------------------------
# 1. Database Dependencies
# ------------------------------------------------------------------------------


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    获取异步数据库会话依赖。
    使用 async with 确保请求结束时自动关闭 session。
    """
    async with AsyncSessionLocal() as session:
        yield session


# 数据库会话依赖类型别名
DBSession = Annotated[AsyncSession, Depends(get_db)]


# ------------------------------------------------------------------------------
# 2. Authentication Dependencies (JWT 鉴权)
# ------------------------------------------------------------------------------


async def get_token_from_header(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """
    从 Authorization Header 提取 Bearer Token。
    格式要求: Authorization: Bearer <token>
    """
    if not authorization:
        raise AppException(SystemErrorCode.UNAUTHORIZED, message="Missing Authorization Header")

    scheme, _, param = authorization.partition(" ")
    if scheme.lower() != "bearer" or not param:
        raise AppException(SystemErrorCode.UNAUTHORIZED, message="Invalid Authentication Scheme")

    return param


async def get_current_user(
    request: Request,
    token: Annotated[str, Depends(get_token_from_header)],
    session: DBSession,
) -> User:
    """
    解析 JWT 并获取当前登录用户。

    流程:
    1. 校验 JWT 签名、有效期与类型
    2. 提取 sub (user_id)
    3. 查库校验用户是否存在、是否激活 (标记以数据库为准)
    """
    subject = decode_access_token(token)
    if subject is None:
        raise AppException(SystemErrorCode.TOKEN_EXPIRED, message="Invalid Token or Expired")

    try:
        user_id = UUID(subject)
    except ValueError:
        raise AppException(SystemErrorCode.UNAUTHORIZED, message="Invalid Token: bad sub") from None

    # 即使 Token 未过期，如果用户被停用，也应拒绝访问
    user = await session.get(User, user_id)

    if not user:
        raise AppException(SystemErrorCode.UNAUTHORIZED, message="User not found")

    if not user.is_active:
        raise AppException(SystemErrorCode.UNAUTHORIZED, message="User is inactive")

    # 供访问日志记录操作者
    request.state.user_id = str(user.id)

    return user


# 已登录用户依赖
# 用法: async def endpoint(user: CurrentUser): ...
CurrentUser = Annotated[User, Depends(get_current_user)]


# ------------------------------------------------------------------------------
# 3. Permission Dependencies (权限控制)
# ------------------------------------------------------------------------------


async def get_paid_user(current_user: CurrentUser) -> User:
    """
    已付费用户校验 (提交婚恋资料的前置条件)。
    """
    if not current_user.is_paid:
        raise AppException(UserErrorCode.PAYMENT_REQUIRED)
    return current_user


PaidUser = Annotated[User, Depends(get_paid_user)]


async def get_current_admin(current_user: CurrentUser) -> User:
    """
    管理员权限校验。
    """
    if not current_user.is_admin:
        raise AppException(SystemErrorCode.FORBIDDEN, message="Administrator access required")
    return current_user


# 管理员依赖
AdminUser = Annotated[User, Depends(get_current_admin)]
