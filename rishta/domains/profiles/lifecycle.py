"""
File: rishta/domains/profiles/lifecycle.py
Description: 婚恋资料生命周期引擎 (状态机 + 照片操作 + 权限契约)

本模块是纯内存、同步的领域逻辑，不做任何 IO：
读取 -> 校验权限与状态 -> 修改 Profile 实例，持久化由 Service 层负责。

状态流转：
- 创建          -> submitted
- 主人编辑       任意状态 -> submitted, published = False
- 管理员通过     任意状态 -> approved,  published = True  (幂等)
- 管理员驳回     任意状态 -> rejected,  published = False (幂等)
- 管理员上下架   仅 approved 可切换 published，status 不变

照片不变式：任意时刻至多一张 is_primary = True。
photos 是 JSON 列，所有操作都构造新列表整体赋值，不做原地修改。

Author: jinmozhe
Created: 2026-10-10
"""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from rishta.core.error_code import SystemErrorCode
from rishta.core.exceptions import AppException
from rishta.core.logging import logger
from rishta.core.storage import StoredImage
from rishta.db.models.base import utcnow
from rishta.db.models.profile import Profile, ProfileStatus
from rishta.db.models.user import User
from rishta.domains.profiles.constants import ProfileErrorCode

Photo = dict[str, Any]


@dataclass(frozen=True)
class Actor:
    """发起操作的身份 (每次请求从数据库重新读取)"""

    user_id: uuid.UUID
    is_admin: bool = False

    @classmethod
    def of(cls, user: User) -> "Actor":
        return cls(user_id=user.id, is_admin=user.is_admin)


# ==============================================================================
# 1. 权限契约
# ==============================================================================


def ensure_owner(profile: Profile, actor: Actor) -> None:
    """内容编辑与照片操作只允许资料主人"""
    if profile.user_id != actor.user_id:
        raise AppException(ProfileErrorCode.NOT_OWNER)


def ensure_admin(actor: Actor) -> None:
    """状态流转与上下架只允许管理员"""
    if not actor.is_admin:
        raise AppException(ProfileErrorCode.ADMIN_REQUIRED)


# ==============================================================================
# 2. 照片列表
# ==============================================================================


def check_photo_invariant(photos: Sequence[Photo]) -> None:
    """
    至多一张主图。
    违反时说明数据已被外部写坏，按内部错误处理。
    """
    primaries = sum(1 for photo in photos if photo.get("is_primary"))
    if primaries > 1:
        logger.bind(primaries=primaries).error("Photo invariant violated: multiple primary photos")
        raise AppException(SystemErrorCode.INTERNAL_ERROR)


def _photo_entry(image: StoredImage, is_primary: bool) -> Photo:
    return {"url": image.url, "key": image.key, "is_primary": is_primary}


def _append_photos(existing: Sequence[Photo], images: Sequence[StoredImage]) -> list[Photo]:
    """
    追加新照片。
    原列表为空时，第一张新照片成为主图；否则新照片均为非主图。
    """
    was_empty = not existing
    photos = [dict(photo) for photo in existing]
    photos.extend(
        _photo_entry(image, is_primary=was_empty and index == 0)
        for index, image in enumerate(images)
    )
    check_photo_invariant(photos)
    return photos


def _find_photo(photos: Sequence[Photo], key: str) -> Photo | None:
    return next((photo for photo in photos if photo.get("key") == key), None)


# ==============================================================================
# 3. 主人操作
# ==============================================================================


def submit_new(
    user_id: uuid.UUID, content: dict[str, Any], images: Sequence[StoredImage]
) -> Profile:
    """
    创建资料并直接进入待审核状态。
    """
    return Profile(
        user_id=user_id,
        **content,
        photos=_append_photos([], images),
        status=ProfileStatus.SUBMITTED.value,
        published=False,
        views=0,
    )


def apply_owner_edit(
    profile: Profile,
    actor: Actor,
    content: dict[str, Any],
    images: Sequence[StoredImage] = (),
) -> Profile:
    """
    主人编辑：覆盖内容字段，追加新照片，重新进入审核。
    """
    ensure_owner(profile, actor)

    profile.update(**content)
    if images:
        profile.photos = _append_photos(profile.photos or [], images)

    profile.status = ProfileStatus.SUBMITTED.value
    profile.published = False
    profile.rejection_reason = None
    return profile


def add_photos(profile: Profile, actor: Actor, images: Sequence[StoredImage]) -> Profile:
    ensure_owner(profile, actor)
    profile.photos = _append_photos(profile.photos or [], images)
    return profile


def remove_photo(
    profile: Profile, actor: Actor, key: str, *, auto_promote: bool = False
) -> Photo:
    """
    按 key 移除照片，返回被移除的条目 (调用方负责删除存储中的文件)。

    移除主图时默认不自动提升其它照片；auto_promote=True 时提升剩余第一张。
    key 不存在时抛 not_found，照片列表保持不变。
    """
    ensure_owner(profile, actor)

    photos = list(profile.photos or [])
    target = _find_photo(photos, key)
    if target is None:
        raise AppException(ProfileErrorCode.PHOTO_NOT_FOUND)

    remaining = [dict(photo) for photo in photos if photo.get("key") != key]
    if target.get("is_primary") and auto_promote and remaining:
        remaining[0]["is_primary"] = True

    check_photo_invariant(remaining)
    profile.photos = remaining
    return target


def set_primary_photo(profile: Profile, actor: Actor, key: str) -> Profile:
    """
    设置主图：目标照片 is_primary = True，其余全部置为 False。
    key 不存在时抛 not_found，照片列表保持不变。
    """
    ensure_owner(profile, actor)

    photos = list(profile.photos or [])
    if _find_photo(photos, key) is None:
        raise AppException(ProfileErrorCode.PHOTO_NOT_FOUND)

    updated = [{**photo, "is_primary": photo.get("key") == key} for photo in photos]
    check_photo_invariant(updated)
    profile.photos = updated
    return profile


# ==============================================================================
# 4. 管理员操作
# ==============================================================================


def approve(profile: Profile, actor: Actor, now: datetime | None = None) -> Profile:
    ensure_admin(actor)

    profile.status = ProfileStatus.APPROVED.value
    profile.published = True
    profile.reviewed_by = actor.user_id
    profile.reviewed_at = now or utcnow()
    profile.rejection_reason = None
    return profile


def reject(
    profile: Profile, actor: Actor, reason: str | None, now: datetime | None = None
) -> Profile:
    ensure_admin(actor)

    profile.status = ProfileStatus.REJECTED.value
    profile.published = False
    profile.rejection_reason = reason
    profile.reviewed_by = actor.user_id
    profile.reviewed_at = now or utcnow()
    return profile


def toggle_publish(profile: Profile, actor: Actor) -> bool:
    """
    切换上架状态，返回切换后的 published。
    非 approved 状态抛 precondition_failed，资料保持不变。
    """
    ensure_admin(actor)

    if profile.status != ProfileStatus.APPROVED:
        raise AppException(ProfileErrorCode.NOT_APPROVED)

    profile.published = not profile.published
    return profile.published
