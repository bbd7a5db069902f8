"""
File: rishta/domains/admin/router.py
Description: 管理后台 HTTP 路由层 (挂载于 /admin, AdminUser)

- GET   /dashboard            管理首页
- GET   /analytics            统计分析
- GET   /users                用户列表
- GET   /users/{user_id}      用户详情
- PATCH /users/{user_id}/status  修改用户状态

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request

from rishta.api.deps import AdminUser
from rishta.core.response import Page, ResponseModel
from rishta.domains.admin.dependencies import AdminServiceDep
from rishta.domains.admin.schemas import Analytics, Dashboard, UserDetail
from rishta.domains.users.constants import UserMsg
from rishta.domains.users.dependencies import UserServiceDep
from rishta.domains.users.schemas import UserFilter, UserRead, UserStatusUpdate

router = APIRouter()


@router.get(
    "/dashboard",
    response_model=ResponseModel[Dashboard],
    summary="管理首页",
)
async def dashboard(
    request: Request,
    admin: AdminUser,
    service: AdminServiceDep,
) -> ResponseModel[Dashboard]:
    data = await service.dashboard()
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=data, request_id=req_id)


@router.get(
    "/analytics",
    response_model=ResponseModel[Analytics],
    summary="统计分析",
    description="本月新增用户/资料、已完成付款与收入；公开资料的性别分布与 Top 10 城市。",
)
async def analytics(
    request: Request,
    admin: AdminUser,
    service: AdminServiceDep,
) -> ResponseModel[Analytics]:
    data = await service.analytics()
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=data, request_id=req_id)


@router.get(
    "/users",
    response_model=ResponseModel[Page[UserRead]],
    summary="用户列表",
)
async def list_users(
    request: Request,
    admin: AdminUser,
    filters: Annotated[UserFilter, Query()],
    service: UserServiceDep,
    page: Annotated[int | None, Query(description="页码 (从 1 开始)")] = None,
) -> ResponseModel[Page[UserRead]]:
    result = await service.list_users(filters, page)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=result, request_id=req_id)


@router.get(
    "/users/{user_id}",
    response_model=ResponseModel[UserDetail],
    summary="用户详情",
)
async def read_user(
    request: Request,
    user_id: UUID,
    admin: AdminUser,
    service: AdminServiceDep,
) -> ResponseModel[UserDetail]:
    data = await service.get_user_detail(user_id)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=data, request_id=req_id)


@router.patch(
    "/users/{user_id}/status",
    response_model=ResponseModel[UserRead],
    summary="修改用户状态",
    description="仅更新传入的字段 (is_active / is_paid / role)。",
)
async def update_user_status(
    request: Request,
    user_id: UUID,
    obj_in: UserStatusUpdate,
    admin: AdminUser,
    service: UserServiceDep,
) -> ResponseModel[UserRead]:
    user = await service.update_status(user_id, obj_in, admin)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=UserRead.model_validate(user),
        message=UserMsg.STATUS_UPDATED,
        request_id=req_id,
    )
