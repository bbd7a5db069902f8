"""
File: rishta/domains/profiles/router.py
Description: 婚恋资料领域 HTTP 路由层

router (挂载于 /profiles)：
1. 资料主人 (PaidUser): 创建 / 查看 / 编辑 / 照片管理
2. 公开浏览 (无需登录): 筛选分页 / 首页推荐 / 详情

admin_router (挂载于 /admin/profiles, AdminUser)：
列表 / 详情 / 审核 / 上下架

注意：固定路径 (/me, /browse, /featured) 必须在 /{profile_id} 之前注册。

Author: jinmozhe
Created: 2026-10-10
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from rishta.api.deps import AdminUser, PaidUser
from rishta.core.response import Page, ResponseModel
from rishta.domains.profiles.constants import ProfileMsg
from rishta.domains.profiles.dependencies import (
    PhotoUploads,
    ProfileContentForm,
    ProfileServiceDep,
)
from rishta.domains.profiles.schemas import (
    AdminProfileFilter,
    ProfilePublicRead,
    ProfileRead,
    PublicProfileFilter,
    ReviewRequest,
)

router = APIRouter()
admin_router = APIRouter()

PageQuery = Annotated[int | None, Query(description="页码 (从 1 开始，<= 0 按 1 处理)")]


# ------------------------------------------------------------------------------
# 资料主人 (需已付费)
# ------------------------------------------------------------------------------


@router.post(
    "",
    response_model=ResponseModel[ProfileRead],
    status_code=status.HTTP_201_CREATED,
    summary="创建婚恋资料",
    description="multipart 表单：payload 为资料 JSON，photos 为照片文件 (最多 5 张，第一张为主图)。",
)
async def create_profile(
    request: Request,
    current_user: PaidUser,
    content: ProfileContentForm,
    uploads: PhotoUploads,
    service: ProfileServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.create_profile(current_user, content, uploads)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=ProfileRead.model_validate(profile),
        message=ProfileMsg.CREATED,
        request_id=req_id,
    )


@router.get(
    "/me",
    response_model=ResponseModel[ProfileRead],
    summary="我的资料",
)
async def read_my_profile(
    request: Request,
    current_user: PaidUser,
    service: ProfileServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.get_my_profile(current_user)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=ProfileRead.model_validate(profile), request_id=req_id)


@router.put(
    "/me",
    response_model=ResponseModel[ProfileRead],
    summary="编辑我的资料",
    description="内容整体覆盖，新照片追加到现有照片之后；资料重新进入待审核并下架。",
)
async def update_my_profile(
    request: Request,
    current_user: PaidUser,
    content: ProfileContentForm,
    uploads: PhotoUploads,
    service: ProfileServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.edit_profile(current_user, content, uploads)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=ProfileRead.model_validate(profile),
        message=ProfileMsg.UPDATED,
        request_id=req_id,
    )


@router.post(
    "/me/photos",
    response_model=ResponseModel[ProfileRead],
    summary="上传照片",
)
async def add_photos(
    request: Request,
    current_user: PaidUser,
    uploads: PhotoUploads,
    service: ProfileServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.add_photos(current_user, uploads)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=ProfileRead.model_validate(profile),
        message=ProfileMsg.PHOTOS_ADDED,
        request_id=req_id,
    )


@router.delete(
    "/me/photos/{key:path}",
    response_model=ResponseModel[ProfileRead],
    summary="删除照片",
)
async def remove_photo(
    request: Request,
    key: str,
    current_user: PaidUser,
    service: ProfileServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.remove_photo(current_user, key)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=ProfileRead.model_validate(profile),
        message=ProfileMsg.PHOTO_DELETED,
        request_id=req_id,
    )


@router.put(
    "/me/photos/{key:path}/primary",
    response_model=ResponseModel[ProfileRead],
    summary="设置主图",
)
async def set_primary_photo(
    request: Request,
    key: str,
    current_user: PaidUser,
    service: ProfileServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.set_primary_photo(current_user, key)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=ProfileRead.model_validate(profile),
        message=ProfileMsg.PRIMARY_UPDATED,
        request_id=req_id,
    )


# ------------------------------------------------------------------------------
# 公开浏览
# ------------------------------------------------------------------------------


@router.get(
    "/browse",
    response_model=ResponseModel[Page[ProfilePublicRead]],
    summary="浏览公开资料",
    description="只返回已通过审核且已上架的资料，最新创建优先，每页 12 条。",
)
async def browse_profiles(
    request: Request,
    filters: Annotated[PublicProfileFilter, Query()],
    service: ProfileServiceDep,
    page: PageQuery = None,
) -> ResponseModel[Page[ProfilePublicRead]]:
    result = await service.list_public_profiles(filters, page)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=result, request_id=req_id)


@router.get(
    "/featured",
    response_model=ResponseModel[list[ProfilePublicRead]],
    summary="首页推荐资料",
)
async def featured_profiles(
    request: Request,
    service: ProfileServiceDep,
) -> ResponseModel[list[ProfilePublicRead]]:
    profiles = await service.list_featured_profiles()
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=profiles, request_id=req_id)


@router.get(
    "/{profile_id}",
    response_model=ResponseModel[ProfilePublicRead],
    summary="公开资料详情",
    description="不可见或不存在的资料统一返回 not_found；每次访问浏览次数 +1。",
)
async def read_public_profile(
    request: Request,
    profile_id: UUID,
    service: ProfileServiceDep,
) -> ResponseModel[ProfilePublicRead]:
    profile = await service.get_public_profile(profile_id)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=ProfilePublicRead.model_validate(profile), request_id=req_id
    )


# ------------------------------------------------------------------------------
# 管理端
# ------------------------------------------------------------------------------


@admin_router.get(
    "",
    response_model=ResponseModel[Page[ProfileRead]],
    summary="资料列表 (管理)",
)
async def list_profiles(
    request: Request,
    admin: AdminUser,
    filters: Annotated[AdminProfileFilter, Query()],
    service: ProfileServiceDep,
    page: PageQuery = None,
) -> ResponseModel[Page[ProfileRead]]:
    result = await service.list_admin_profiles(filters, page)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=result, request_id=req_id)


@admin_router.get(
    "/{profile_id}",
    response_model=ResponseModel[ProfileRead],
    summary="资料详情 (管理)",
)
async def read_profile(
    request: Request,
    profile_id: UUID,
    admin: AdminUser,
    service: ProfileServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.get_admin_profile(profile_id)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=ProfileRead.model_validate(profile), request_id=req_id)


@admin_router.post(
    "/{profile_id}/review",
    response_model=ResponseModel[ProfileRead],
    summary="审核资料",
    description="approve: 通过并上架；reject: 驳回并下架，可附驳回原因。",
)
async def review_profile(
    request: Request,
    profile_id: UUID,
    review: ReviewRequest,
    admin: AdminUser,
    service: ProfileServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.review_profile(profile_id, admin, review)
    req_id = getattr(request.state, "request_id", None)

    message = ProfileMsg.APPROVED if review.action == "approve" else ProfileMsg.REJECTED
    return ResponseModel.success(
        data=ProfileRead.model_validate(profile), message=message, request_id=req_id
    )


@admin_router.post(
    "/{profile_id}/publish",
    response_model=ResponseModel[ProfileRead],
    summary="切换上架状态",
    description="仅已通过审核的资料可以上下架，否则返回 precondition_failed。",
)
async def toggle_publish(
    request: Request,
    profile_id: UUID,
    admin: AdminUser,
    service: ProfileServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.toggle_publish(profile_id, admin)
    req_id = getattr(request.state, "request_id", None)

    message = ProfileMsg.PUBLISHED if profile.published else ProfileMsg.UNPUBLISHED
    return ResponseModel.success(
        data=ProfileRead.model_validate(profile), message=message, request_id=req_id
    )
