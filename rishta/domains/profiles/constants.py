"""
File: rishta/domains/profiles/constants.py
Description: 婚恋资料领域常量定义 (错误码 + 成功提示)
Namespace: profiles.*

Author: jinmozhe
Created: 2026-10-10
"""

from starlette.status import (
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_412_PRECONDITION_FAILED,
)

from rishta.core.error_code import BaseErrorCode


class ProfileErrorCode(BaseErrorCode):
    """
    资料领域错误定义
    Tuple Structure: (HTTP_Status, Code_String, Default_Message)
    """

    # HTTP 404: 资源不存在或调用方不可见 (不区分两者，避免泄露存在性)
    PROFILE_NOT_FOUND = (HTTP_404_NOT_FOUND, "profiles.not_found", "Profile not found")
    PHOTO_NOT_FOUND = (HTTP_404_NOT_FOUND, "profiles.photo_not_found", "Photo not found")

    # HTTP 409: 每个用户只允许一份资料
    PROFILE_EXISTS = (
        HTTP_409_CONFLICT,
        "profiles.already_exists",
        "You already have a profile. You can edit it instead.",
    )

    # HTTP 403: 已认证但不是资料主人 / 不是管理员
    NOT_OWNER = (
        HTTP_403_FORBIDDEN,
        "profiles.not_owner",
        "Access denied. You can only modify your own profile.",
    )
    ADMIN_REQUIRED = (
        HTTP_403_FORBIDDEN,
        "profiles.admin_required",
        "Access denied. Admin privileges required.",
    )

    # HTTP 412: 只有已通过审核的资料可以上下架
    NOT_APPROVED = (
        HTTP_412_PRECONDITION_FAILED,
        "profiles.not_approved",
        "Only approved profiles can be published",
    )


class ProfileMsg:
    """
    资料领域成功提示文案
    """

    CREATED = "Profile created successfully! It will be reviewed by our team before publishing."
    UPDATED = "Profile updated successfully! It will be reviewed by our team before publishing."
    PHOTOS_ADDED = "Photos uploaded successfully"
    PHOTO_DELETED = "Photo deleted successfully"
    PRIMARY_UPDATED = "Primary photo updated successfully"
    APPROVED = "Profile approved successfully"
    REJECTED = "Profile rejected successfully"
    PUBLISHED = "Profile published successfully"
    UNPUBLISHED = "Profile unpublished successfully"
