"""
File: rishta/domains/auth/router.py
Description: 认证领域 HTTP 路由层

本模块定义认证相关的 API 端点：
1. POST /register: 注册 (公开)
2. POST /login: 登录 (返回双 Token + next_step)
3. POST /refresh: 刷新 (旋转策略，返回新双 Token)
4. POST /logout: 登出 (销毁 Refresh Token)

规范：
- 使用统一响应信封 (ResponseModel.success)
- 使用 AuthServiceDep 进行服务注入
- 引用 AuthMsg 常量作为响应消息

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-10 (register)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from redis.asyncio import Redis

from rishta.core.redis import get_redis
from rishta.core.response import ResponseModel
from rishta.domains.auth.constants import AuthMsg
from rishta.domains.auth.schemas import LoginRequest, RefreshRequest, Token
from rishta.domains.auth.service import AuthService
from rishta.domains.users.dependencies import UserRepoDep, UserServiceDep
from rishta.domains.users.schemas import UserCreate, UserRead

router = APIRouter()

# ------------------------------------------------------------------------------
# 依赖注入构造器 (Dependencies)
# ------------------------------------------------------------------------------


async def get_auth_service(
    user_repo: UserRepoDep,
    redis: Annotated[Redis, Depends(get_redis)],
) -> AuthService:
    """
    构造 AuthService 实例。
    复用 User 领域的 Repository，并注入 Redis 客户端。
    """
    return AuthService(user_repo=user_repo, redis=redis)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


# ------------------------------------------------------------------------------
# Endpoints (路由定义)
# ------------------------------------------------------------------------------


@router.post(
    "/register",
    response_model=ResponseModel[UserRead],
    status_code=status.HTTP_201_CREATED,
    summary="注册新用户",
    description="使用姓名、邮箱、手机号与密码注册。邮箱必须唯一。无需登录。",
)
async def register(
    request: Request,
    user_in: UserCreate,
    service: UserServiceDep,
) -> ResponseModel[UserRead]:
    user = await service.create(user_in)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=UserRead.model_validate(user),
        message=AuthMsg.REGISTER_SUCCESS,
        request_id=req_id,
    )


@router.post(
    "/login",
    response_model=ResponseModel[Token],
    summary="用户登录",
    description="使用邮箱密码登录，成功后返回 Access Token (JWT)、Refresh Token 与 next_step。",
)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthServiceDep,
) -> ResponseModel[Token]:
    token = await service.login(login_data)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=token, message=AuthMsg.LOGIN_SUCCESS, request_id=req_id
    )


@router.post(
    "/refresh",
    response_model=ResponseModel[Token],
    summary="刷新令牌 (续期)",
    description="使用有效的 Refresh Token 换取新的一对 Token (Token Rotation 策略)。旧 Token 将失效。",
)
async def refresh_token(
    request: Request,
    refresh_data: RefreshRequest,
    service: AuthServiceDep,
) -> ResponseModel[Token]:
    token = await service.refresh_token(refresh_data.refresh_token)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=token, message=AuthMsg.REFRESH_SUCCESS, request_id=req_id
    )


@router.post(
    "/logout",
    response_model=ResponseModel[None],
    summary="用户登出",
    description="销毁服务端存储的 Refresh Token，使该会话失效。",
)
async def logout(
    request: Request,
    refresh_data: RefreshRequest,
    service: AuthServiceDep,
) -> ResponseModel[None]:
    await service.logout(refresh_data.refresh_token)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=None, message=AuthMsg.LOGOUT_SUCCESS, request_id=req_id
    )
