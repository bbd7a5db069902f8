"""
File: rishta/domains/auth/service.py
Description: 认证领域服务 (Service)

本模块封装认证核心业务逻辑：
1. 登录校验: 验证邮箱与密码，更新最近登录时间，签发双 Token。
2. 刷新令牌: 验证 Redis 中的 Refresh Token，执行旋转策略 (Rotation)。
3. 用户登出: 销毁 Refresh Token。
4. next_step: 根据数据库中的最新标记决定客户端下一步 (付款 / 建档 / 面板)。

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-10 (email login, next_step)
"""

from datetime import timedelta
from uuid import UUID

from redis.asyncio import Redis

from rishta.core.config import settings
from rishta.core.exceptions import AppException
from rishta.core.logging import logger
from rishta.core.redis import refresh_token_key
from rishta.core.security import (
    create_access_token,
    generate_refresh_token,
    verify_password_async,
)
from rishta.db.models.base import utcnow
from rishta.db.models.user import User
from rishta.domains.auth.constants import AuthError, NextStep
from rishta.domains.auth.schemas import LoginRequest, Token
from rishta.domains.users.repository import UserRepository
from rishta.utils.masking import mask_email


def next_step_for(user: User) -> NextStep:
    """未付费 -> payment；未建档 -> profile；否则 -> dashboard"""
    if not user.is_paid:
        return NextStep.PAYMENT
    if not user.profile_completed:
        return NextStep.PROFILE
    return NextStep.DASHBOARD


class AuthService:
    """
    认证服务类。
    """

    def __init__(self, user_repo: UserRepository, redis: Redis):
        self.user_repo = user_repo
        self.redis = redis

    async def login(self, login_data: LoginRequest) -> Token:
        """
        用户登录流程。

        流程:
        1. 查库获取用户 (Fail Fast)
        2. 验证密码哈希 (异步)
        3. 检查用户激活状态
        4. 记录最近登录时间
        5. 生成 Access Token (JWT) + Refresh Token (Redis)
        """
        user = await self.user_repo.get_by_email(login_data.email)

        # 用户不存在与密码错误返回完全一致的响应
        if not user:
            logger.bind(email=mask_email(login_data.email)).info("Login failed: unknown email")
            raise AppException(AuthError.INVALID_CREDENTIALS)

        if not await verify_password_async(login_data.password, user.hashed_password):
            logger.bind(user_id=str(user.id)).info("Login failed: wrong password")
            raise AppException(AuthError.INVALID_CREDENTIALS)

        if not user.is_active:
            raise AppException(AuthError.ACCOUNT_DISABLED)

        user.last_login_at = utcnow()
        await self.user_repo.save(user)
        await self.user_repo.session.commit()

        logger.bind(user_id=str(user.id)).info("User logged in")

        return await self._create_tokens(user)

    async def refresh_token(self, refresh_token: str) -> Token:
        """
        使用 Refresh Token 换取新 Token (Token Rotation)。

        流程:
        1. 查 Redis 确认 token 有效性
        2. 销毁旧 Token (防重放)
        3. 查库确认用户仍然存在且处于激活状态
        4. 签发全新的一对 Access + Refresh Token
        """
        redis_key = refresh_token_key(refresh_token)
        user_id = await self.redis.get(redis_key)

        if not user_id:
            raise AppException(AuthError.REFRESH_TOKEN_INVALID)

        # 一次性使用策略
        await self.redis.delete(redis_key)

        user = await self.user_repo.get(UUID(user_id))
        if not user:
            raise AppException(AuthError.REFRESH_TOKEN_INVALID)
        if not user.is_active:
            raise AppException(AuthError.ACCOUNT_DISABLED)

        return await self._create_tokens(user)

    async def logout(self, refresh_token: str) -> None:
        """
        用户登出。
        直接从 Redis 删除对应的 Refresh Token。
        """
        await self.redis.delete(refresh_token_key(refresh_token))

    async def _create_tokens(self, user: User) -> Token:
        """
        [内部方法] 构造 Token 响应并持久化 Refresh Token。
        """
        user_id = str(user.id)
        access_token = create_access_token(subject=user_id)
        refresh_token = generate_refresh_token()

        # Key: refresh_token:xyz... -> Value: user_id
        await self.redis.setex(
            refresh_token_key(refresh_token),
            timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            user_id,
        )

        return Token(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            token_type="bearer",
            next_step=next_step_for(user),
        )
