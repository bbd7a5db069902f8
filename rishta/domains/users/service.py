"""
File: rishta/domains/users/service.py
Description: 用户领域服务 (业务逻辑层)

本模块封装用户管理的核心业务逻辑：
1. 用户注册 (创建)：校验邮箱唯一性、哈希密码、写入数据库。
2. 用户查询：通过 ID 获取用户。
3. 管理端：条件分页列表、修改状态 (is_active / is_paid / role)。
4. 异常处理：抛出业务特定的 AppException。

注意：
- 所有数据库写操作的事务提交 (Commit) 由本层负责。
- 密码哈希使用异步版本函数，避免阻塞事件循环。

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-10
"""

from uuid import UUID

from sqlalchemy.exc import IntegrityError

from rishta.core.config import settings
from rishta.core.exceptions import AppException
from rishta.core.logging import logger
from rishta.core.response import Page, normalize_page
from rishta.core.security import get_password_hash_async
from rishta.db.models.user import User
from rishta.domains.users.constants import UserErrorCode
from rishta.domains.users.repository import UserRepository
from rishta.domains.users.schemas import UserCreate, UserFilter, UserRead, UserStatusUpdate
from rishta.utils.masking import mask_email


class UserService:
    """
    用户领域服务。

    职责：
    - 编排业务流程
    - 执行业务规则校验 (如：邮箱是否重复)
    - 调用 Repository 进行数据持久化
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    async def create(self, obj_in: UserCreate) -> User:
        """
        创建新用户 (注册)。
        """
        # 1. 唯一性校验 (Fail Fast)
        if await self.repo.get_by_email(obj_in.email):
            raise AppException(UserErrorCode.EMAIL_EXIST)

        # 2. 密码加密 (使用异步版本，避免阻塞事件循环)
        hashed_password = await get_password_hash_async(obj_in.password)

        # 3. 持久化与事务提交
        # 并发注册同一邮箱时由唯一约束兜底
        try:
            user = await self.repo.create(
                {
                    "name": obj_in.name,
                    "email": obj_in.email,
                    "phone": obj_in.phone,
                    "hashed_password": hashed_password,
                }
            )
            await self.repo.session.commit()
        except IntegrityError:
            await self.repo.session.rollback()
            raise AppException(UserErrorCode.EMAIL_EXIST) from None

        logger.bind(user_id=str(user.id), email=mask_email(user.email)).info(
            "User registered successfully"
        )

        return user

    async def get(self, user_id: UUID) -> User:
        """
        获取用户详情。
        """
        user = await self.repo.get(user_id)
        if not user:
            raise AppException(UserErrorCode.USER_NOT_FOUND)
        return user

    async def list_users(self, filters: UserFilter, page: int | None) -> Page[UserRead]:
        """
        管理端用户列表。
        """
        page = normalize_page(page)
        page_size = settings.ADMIN_PAGE_SIZE
        users, total = await self.repo.list_for_admin(filters, page=page, page_size=page_size)
        return Page[UserRead](
            items=[UserRead.model_validate(user) for user in users],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def update_status(
        self, user_id: UUID, obj_in: UserStatusUpdate, admin: User
    ) -> User:
        """
        管理端修改用户状态。
        """
        user = await self.get(user_id)

        update_data = obj_in.model_dump(exclude_unset=True, exclude_none=True)
        if "role" in update_data:
            update_data["role"] = update_data["role"].value

        updated_user = await self.repo.update(user, update_data)
        await self.repo.session.commit()

        logger.bind(
            user_id=str(user_id), admin_id=str(admin.id), changes=update_data
        ).info("User status updated by admin")

        return updated_user
