"""
File: rishta/domains/profiles/service.py
Description: 婚恋资料领域服务 (业务逻辑层)

本模块编排资料相关的完整流程：
1. 读取 -> 生命周期引擎校验并修改 -> 持久化 (commit 由本层负责)
2. 图片上传在写库之前完成；写库失败时回滚事务并尽力删除已上传的图片
3. 删除照片先写库，再尽力删除存储中的文件 (失败只记日志)
4. 列表查询: 公开路径只返回 approved AND published，管理端不加限制

Author: jinmozhe
Created: 2026-10-10
Updated: 2026-10-19 (constraint conflicts only on create)
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from rishta.core.config import settings
from rishta.core.error_code import SystemErrorCode
from rishta.core.exceptions import AppException
from rishta.core.logging import logger
from rishta.core.response import Page, normalize_page
from rishta.core.storage import ImageStore, ImageUpload, StoredImage, upload_images
from rishta.db.models.profile import Profile
from rishta.db.models.user import User
from rishta.domains.profiles import lifecycle
from rishta.domains.profiles.constants import ProfileErrorCode
from rishta.domains.profiles.lifecycle import Actor
from rishta.domains.profiles.repository import ProfileRepository
from rishta.domains.profiles.schemas import (
    AdminProfileFilter,
    ProfileContent,
    ProfilePublicRead,
    ProfileRead,
    PublicProfileFilter,
    ReviewRequest,
)


def photo_folder(user_id: UUID) -> str:
    return f"profiles/{user_id}"


class ProfileService:
    """
    资料领域服务。
    """

    def __init__(self, repo: ProfileRepository, store: ImageStore):
        self.repo = repo
        self.store = store

    # --------------------------------------------------------------------------
    # 内部工具
    # --------------------------------------------------------------------------

    async def _persist(
        self,
        profile: Profile,
        uploaded: Sequence[StoredImage] = (),
        *extra: object,
        creating: bool = False,
    ) -> Profile:
        """
        持久化资料 (及同一事务内的其它对象) 并提交。
        写库失败时回滚，并清理本次请求已上传的图片。

        creating=True 时唯一约束冲突 (并发重复创建) 返回 conflict；
        其它写入路径不可能出现重复资料，按数据库故障处理。
        """
        session = self.repo.session
        # rollback 会使对象过期，提前取出日志所需字段
        owner_id = profile.user_id
        try:
            for obj in extra:
                session.add(obj)
            await self.repo.save(profile)
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            await self.store.delete_many_quietly([image.key for image in uploaded])
            if creating:
                logger.bind(user_id=str(owner_id)).warning(
                    "Concurrent profile creation rejected by unique constraint"
                )
                raise AppException(ProfileErrorCode.PROFILE_EXISTS) from None
            logger.opt(exception=exc).bind(user_id=str(owner_id)).error(
                "Profile write violated a constraint, cleaning up uploaded images"
            )
            raise AppException(SystemErrorCode.DB_UNAVAILABLE) from None
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.opt(exception=exc).error("Profile write failed, cleaning up uploaded images")
            await self.store.delete_many_quietly([image.key for image in uploaded])
            raise AppException(SystemErrorCode.DB_UNAVAILABLE) from None
        return profile

    async def _get(self, profile_id: UUID) -> Profile:
        profile = await self.repo.get(profile_id)
        if not profile:
            raise AppException(ProfileErrorCode.PROFILE_NOT_FOUND)
        return profile

    # --------------------------------------------------------------------------
    # 资料主人
    # --------------------------------------------------------------------------

    async def create_profile(
        self, user: User, content: ProfileContent, uploads: Sequence[ImageUpload]
    ) -> Profile:
        """
        创建资料 (每个用户仅一份)。
        并发重复提交由 user_id 唯一约束兜底，同样返回 conflict。
        """
        if await self.repo.get_by_user_id(user.id):
            raise AppException(ProfileErrorCode.PROFILE_EXISTS)

        uploaded = await upload_images(self.store, list(uploads), photo_folder(user.id))

        profile = lifecycle.submit_new(user.id, content.to_columns(), uploaded)
        user.profile_completed = True
        profile = await self._persist(profile, uploaded, user, creating=True)

        logger.bind(
            user_id=str(user.id), profile_id=str(profile.id), photos=len(uploaded)
        ).info("Profile created and submitted for review")
        return profile

    async def get_my_profile(self, user: User) -> Profile:
        profile = await self.repo.get_by_user_id(user.id)
        if not profile:
            raise AppException(
                ProfileErrorCode.PROFILE_NOT_FOUND,
                message="No profile found. Please create a profile first.",
            )
        return profile

    async def edit_profile(
        self, user: User, content: ProfileContent, uploads: Sequence[ImageUpload]
    ) -> Profile:
        """
        编辑资料：内容整体覆盖，新照片追加，重新进入审核。
        """
        profile = await self.get_my_profile(user)
        actor = Actor.of(user)
        lifecycle.ensure_owner(profile, actor)

        uploaded = await upload_images(self.store, list(uploads), photo_folder(user.id))
        lifecycle.apply_owner_edit(profile, actor, content.to_columns(), uploaded)
        profile = await self._persist(profile, uploaded)

        logger.bind(user_id=str(user.id), profile_id=str(profile.id)).info(
            "Profile edited and resubmitted for review"
        )
        return profile

    async def add_photos(self, user: User, uploads: Sequence[ImageUpload]) -> Profile:
        if not uploads:
            raise AppException(SystemErrorCode.INVALID_PARAMS, message="Please select at least one photo")

        profile = await self.get_my_profile(user)
        actor = Actor.of(user)
        lifecycle.ensure_owner(profile, actor)

        uploaded = await upload_images(self.store, list(uploads), photo_folder(user.id))
        lifecycle.add_photos(profile, actor, uploaded)
        return await self._persist(profile, uploaded)

    async def remove_photo(self, user: User, key: str) -> Profile:
        """
        删除照片：先写库，再尽力删除存储中的文件。
        """
        profile = await self.get_my_profile(user)
        removed = lifecycle.remove_photo(
            profile,
            Actor.of(user),
            key,
            auto_promote=settings.PROFILE_AUTO_PROMOTE_PRIMARY,
        )
        profile = await self._persist(profile)

        await self.store.delete_quietly(removed["key"])

        logger.bind(user_id=str(user.id), image_key=key).info("Profile photo removed")
        return profile

    async def set_primary_photo(self, user: User, key: str) -> Profile:
        profile = await self.get_my_profile(user)
        lifecycle.set_primary_photo(profile, Actor.of(user), key)
        return await self._persist(profile)

    # --------------------------------------------------------------------------
    # 管理员
    # --------------------------------------------------------------------------

    async def review_profile(self, profile_id: UUID, admin: User, review: ReviewRequest) -> Profile:
        profile = await self._get(profile_id)
        actor = Actor.of(admin)

        if review.action == "approve":
            lifecycle.approve(profile, actor)
        else:
            lifecycle.reject(profile, actor, review.rejection_reason)

        profile = await self._persist(profile)

        logger.bind(
            profile_id=str(profile_id), admin_id=str(admin.id), action=review.action
        ).info("Profile reviewed")
        return profile

    async def toggle_publish(self, profile_id: UUID, admin: User) -> Profile:
        profile = await self._get(profile_id)
        published = lifecycle.toggle_publish(profile, Actor.of(admin))
        profile = await self._persist(profile)

        logger.bind(
            profile_id=str(profile_id), admin_id=str(admin.id), published=published
        ).info("Profile publication toggled")
        return profile

    async def get_admin_profile(self, profile_id: UUID) -> Profile:
        return await self._get(profile_id)

    async def list_admin_profiles(
        self, filters: AdminProfileFilter, page: int | None
    ) -> Page[ProfileRead]:
        page = normalize_page(page)
        page_size = settings.ADMIN_PAGE_SIZE
        profiles, total = await self.repo.list_profiles(
            filters, public_only=False, page=page, page_size=page_size
        )
        return Page[ProfileRead](
            items=[ProfileRead.model_validate(profile) for profile in profiles],
            total=total,
            page=page,
            page_size=page_size,
        )

    # --------------------------------------------------------------------------
    # 公开浏览
    # --------------------------------------------------------------------------

    async def list_public_profiles(
        self, filters: PublicProfileFilter, page: int | None
    ) -> Page[ProfilePublicRead]:
        page = normalize_page(page)
        page_size = settings.PUBLIC_PAGE_SIZE
        profiles, total = await self.repo.list_profiles(
            filters, public_only=True, page=page, page_size=page_size
        )
        return Page[ProfilePublicRead](
            items=[ProfilePublicRead.model_validate(profile) for profile in profiles],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def list_featured_profiles(self) -> list[ProfilePublicRead]:
        profiles, _ = await self.repo.list_profiles(
            PublicProfileFilter(),
            public_only=True,
            page=1,
            page_size=settings.FEATURED_PROFILES_LIMIT,
        )
        return [ProfilePublicRead.model_validate(profile) for profile in profiles]

    async def get_public_profile(self, profile_id: UUID) -> Profile:
        """
        公开详情：不可见与不存在返回同样的 not_found。
        每次访问浏览次数 +1。
        """
        profile = await self.repo.get_public(profile_id)
        if not profile:
            raise AppException(ProfileErrorCode.PROFILE_NOT_FOUND)

        await self.repo.increment_views(profile_id)
        await self.repo.session.commit()
        await self.repo.session.refresh(profile)
        return profile
