"""
File: rishta/domains/users/router.py
Description: 用户领域 HTTP 路由层

注册接口位于 auth 领域 (POST /auth/register)。
本模块仅提供当前用户查询：标记 (is_paid / profile_completed) 每次都从数据库读取。

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-10
"""

from fastapi import APIRouter, Request

from rishta.api.deps import CurrentUser
from rishta.core.response import ResponseModel
from rishta.domains.users.schemas import UserRead

router = APIRouter()


@router.get(
    "/me",
    response_model=ResponseModel[UserRead],
    summary="获取当前用户",
    description="获取当前登录用户的账号信息与状态标记。需携带有效 Token。",
)
async def read_user_me(
    request: Request,
    current_user: CurrentUser,
) -> ResponseModel[UserRead]:
    """
    查询当前用户接口 (Secured)
    """
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=UserRead.model_validate(current_user),
        request_id=req_id,
    )
