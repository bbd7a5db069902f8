"""
File: rishta/domains/users/repository.py
Description: 用户领域仓储层 (Repository)

本模块负责用户数据的数据库访问，继承自通用 BaseRepository。
扩展功能：
1. get_by_email: 根据邮箱查询 (登录凭证)
2. list_for_admin: 管理端条件分页
3. mark_paid: 条件更新 is_paid (幂等，供付款对账使用)

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-10
"""

from uuid import UUID

from sqlalchemy import ColumnElement, or_, select, update

from rishta.db.models.user import User
from rishta.db.repositories.base import BaseRepository
from rishta.domains.users.schemas import UserFilter


class UserRepository(BaseRepository[User]):
    """
    用户仓储类。
    继承了 BaseRepository 的 create/update/get/paginate 方法。
    """

    async def get_by_email(self, email: str) -> User | None:
        """
        根据邮箱查询用户 (邮箱统一小写存储)。
        """
        stmt = select(User).where(User.email == email.lower())
        # 使用 scalar_one_or_none 以确保数据唯一性 (如果有脏数据导致多条，会抛错)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_admin(
        self, filters: UserFilter, *, page: int, page_size: int
    ) -> tuple[list[User], int]:
        """
        管理端用户列表 (最新注册优先)。
        """
        conditions: list[ColumnElement[bool]] = []
        if filters.role is not None:
            conditions.append(User.role == filters.role.value)
        if filters.is_paid is not None:
            conditions.append(User.is_paid.is_(filters.is_paid))
        if filters.is_active is not None:
            conditions.append(User.is_active.is_(filters.is_active))
        if filters.search:
            term = filters.search.strip()
            conditions.append(
                or_(
                    User.name.icontains(term, autoescape=True),
                    User.email.icontains(term, autoescape=True),
                    User.phone.icontains(term, autoescape=True),
                )
            )

        return await self.paginate(conditions, page=page, page_size=page_size)

    async def mark_paid(self, user_id: UUID) -> bool:
        """
        将用户标记为已付费。
        条件更新 (is_paid = false) 保证重复执行无副作用。

        Returns:
            bool: 本次是否实际发生了变更
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.is_paid.is_(False))
            .values(is_paid=True)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)
