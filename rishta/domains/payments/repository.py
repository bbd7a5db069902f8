"""
File: rishta/domains/payments/repository.py
Description: 付款领域仓储层 (Repository)

扩展功能：
1. list_for_user: 用户的付款记录 (可按状态过滤，最新优先)
2. leave_pending: 条件更新 (WHERE status = pending)，取消与核实共用，保证付款只离开 pending 一次
3. list_for_admin: 管理端条件分页
4. has_completed / user_ids_needing_reconcile: 付费标记对账

Author: jinmozhe
Created: 2026-10-11
Updated: 2026-10-19 (conditional pending transitions)
"""

from uuid import UUID

from sqlalchemy import ColumnElement, exists, select, update

from rishta.db.models.payment import Payment, PaymentStatus
from rishta.db.models.user import User
from rishta.db.repositories.base import BaseRepository
from rishta.domains.payments.schemas import PaymentFilter


class PaymentRepository(BaseRepository[Payment]):
    """
    付款仓储类。
    """

    async def list_for_user(
        self, user_id: UUID, status: PaymentStatus | None = None
    ) -> list[Payment]:
        stmt = select(Payment).where(Payment.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Payment.status == status.value)
        stmt = stmt.order_by(Payment.created_at.desc(), Payment.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def leave_pending(
        self, payment_id: UUID, values: dict, *, user_id: UUID | None = None
    ) -> bool:
        """
        把仍为 pending 的付款更新为 values。
        用户取消与管理员核实并发时，只有先到的一方命中。

        Returns:
            bool: 本次是否实际发生了变更
        """
        conditions = [Payment.id == payment_id, Payment.status == PaymentStatus.PENDING.value]
        if user_id is not None:
            conditions.append(Payment.user_id == user_id)

        stmt = (
            update(Payment)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)

    async def list_for_admin(
        self, filters: PaymentFilter, *, page: int, page_size: int
    ) -> tuple[list[Payment], int]:
        conditions: list[ColumnElement[bool]] = []
        if filters.status is not None:
            conditions.append(Payment.status == filters.status.value)
        if filters.payment_method is not None:
            conditions.append(Payment.payment_method == filters.payment_method.value)
        if filters.payment_type is not None:
            conditions.append(Payment.payment_type == filters.payment_type.value)

        return await self.paginate(conditions, page=page, page_size=page_size)

    async def has_completed(self, user_id: UUID) -> bool:
        stmt = select(
            exists().where(
                Payment.user_id == user_id,
                Payment.status == PaymentStatus.COMPLETED.value,
            )
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def user_ids_needing_reconcile(self) -> list[UUID]:
        """
        存在 completed 付款但 is_paid 仍为 False 的用户。
        """
        stmt = (
            select(User.id)
            .where(
                User.is_paid.is_(False),
                exists().where(
                    Payment.user_id == User.id,
                    Payment.status == PaymentStatus.COMPLETED.value,
                ),
            )
            .order_by(User.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
