"""
File: rishta/domains/admin/repository.py
Description: 管理后台统计仓储 (聚合查询)

跨表统计不属于任何单一模型，因此不继承 BaseRepository，
仅持有会话并执行只读聚合查询。

Author: jinmozhe
Created: 2026-10-12
"""

from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rishta.db.models.payment import Payment, PaymentStatus
from rishta.db.models.profile import Profile


class AnalyticsRepository:
    """
    管理后台聚合查询。
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def completed_payment_totals(self, since: datetime) -> tuple[int, int]:
        """
        指定时间之后已完成付款的 (笔数, 金额合计)。
        """
        stmt = select(func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.status == PaymentStatus.COMPLETED.value,
            Payment.created_at >= since,
        )
        result = await self.session.execute(stmt)
        count, revenue = result.one()
        return int(count), int(revenue)

    async def public_gender_distribution(self) -> list[tuple[str, int]]:
        """公开资料的性别分布"""
        total = func.count(Profile.id).label("total")
        stmt = (
            select(Profile.gender, total)
            .where(Profile.is_public)
            .group_by(Profile.gender)
            .order_by(desc(total), Profile.gender)
        )
        result = await self.session.execute(stmt)
        return [(gender, int(count)) for gender, count in result.all()]

    async def public_top_cities(self, limit: int = 10) -> list[tuple[str, int]]:
        """公开资料数量最多的城市 (Top N)"""
        total = func.count(Profile.id).label("total")
        stmt = (
            select(Profile.city, total)
            .where(Profile.is_public)
            .group_by(Profile.city)
            .order_by(desc(total), Profile.city)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(city, int(count)) for city, count in result.all()]
