"""
File: rishta/domains/profiles/repository.py
Description: 婚恋资料仓储层 (Repository)

扩展功能：
1. get_by_user_id: 按所属用户查询 (1:1)
2. get_public: 仅返回公开可见 (approved AND published) 的资料
3. list_profiles: 按筛选条件构建谓词并分页 (最新创建优先)
4. increment_views: 原子递增浏览次数

Author: jinmozhe
Created: 2026-10-10
"""

from uuid import UUID

from sqlalchemy import ColumnElement, select, update

from rishta.db.models.base import utcnow
from rishta.db.models.profile import Profile
from rishta.db.repositories.base import BaseRepository
from rishta.domains.profiles.schemas import AdminProfileFilter, PublicProfileFilter


def build_conditions(
    filters: PublicProfileFilter, *, public_only: bool
) -> list[ColumnElement[bool]]:
    """
    由筛选条件构建 WHERE 谓词。
    公开路径强制附加 is_public，管理端可不加限制。
    """
    conditions: list[ColumnElement[bool]] = []
    if public_only:
        conditions.append(Profile.is_public)

    if filters.gender is not None:
        conditions.append(Profile.gender == filters.gender.value)
    if filters.city:
        conditions.append(Profile.city.icontains(filters.city.strip(), autoescape=True))
    if filters.min_age is not None:
        conditions.append(Profile.age >= filters.min_age)
    if filters.max_age is not None:
        conditions.append(Profile.age <= filters.max_age)

    if isinstance(filters, AdminProfileFilter):
        if filters.status is not None:
            conditions.append(Profile.status == filters.status.value)
        if filters.published is not None:
            conditions.append(Profile.published.is_(filters.published))

    return conditions


class ProfileRepository(BaseRepository[Profile]):
    """
    资料仓储类。
    """

    async def get_by_user_id(self, user_id: UUID) -> Profile | None:
        stmt = select(Profile).where(Profile.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_public(self, profile_id: UUID) -> Profile | None:
        stmt = select(Profile).where(Profile.id == profile_id, Profile.is_public)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_profiles(
        self,
        filters: PublicProfileFilter,
        *,
        public_only: bool,
        page: int,
        page_size: int,
    ) -> tuple[list[Profile], int]:
        conditions = build_conditions(filters, public_only=public_only)
        return await self.paginate(conditions, page=page, page_size=page_size)

    async def increment_views(self, profile_id: UUID) -> None:
        """
        浏览次数 +1 (单条 UPDATE，避免读改写丢失并发计数)。
        """
        stmt = (
            update(Profile)
            .where(Profile.id == profile_id)
            .values(
                views=Profile.views + 1,
                last_viewed_at=utcnow(),
                updated_at=Profile.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
