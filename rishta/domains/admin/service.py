"""
File: rishta/domains/admin/service.py
Description: 管理后台服务

1. dashboard: 各类计数 + 最新 5 条用户/资料/付款
2. analytics: 本月新增与收入统计，公开资料性别/城市分布
3. get_user_detail: 用户 + 资料 + 付款记录

用户列表与状态修改复用 UserService。

Author: jinmozhe
Created: 2026-10-12
"""

from datetime import datetime
from uuid import UUID

from rishta.db.models.base import utcnow
from rishta.db.models.payment import Payment, PaymentStatus
from rishta.db.models.profile import Profile, ProfileStatus
from rishta.db.models.user import User
from rishta.domains.admin.repository import AnalyticsRepository
from rishta.domains.admin.schemas import (
    Analytics,
    CountBucket,
    Dashboard,
    DashboardStats,
    MonthlySummary,
    UserDetail,
)
from rishta.domains.payments.repository import PaymentRepository
from rishta.domains.payments.schemas import PaymentRead
from rishta.domains.profiles.repository import ProfileRepository
from rishta.domains.profiles.schemas import ProfileRead
from rishta.domains.users.schemas import UserRead
from rishta.domains.users.service import UserService

RECENT_LIMIT = 5
TOP_CITIES_LIMIT = 10


def month_start(now: datetime | None = None) -> datetime:
    """本月 1 日 00:00 (保留时区)"""
    now = now or utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class AdminService:
    def __init__(
        self,
        user_service: UserService,
        profile_repo: ProfileRepository,
        payment_repo: PaymentRepository,
        analytics_repo: AnalyticsRepository,
    ):
        self.user_service = user_service
        self.user_repo = user_service.repo
        self.profile_repo = profile_repo
        self.payment_repo = payment_repo
        self.analytics_repo = analytics_repo

    async def dashboard(self) -> Dashboard:
        stats = DashboardStats(
            total_users=await self.user_repo.count(),
            paid_users=await self.user_repo.count(User.is_paid.is_(True)),
            submitted_profiles=await self.profile_repo.count(
                Profile.status == ProfileStatus.SUBMITTED.value
            ),
            approved_profiles=await self.profile_repo.count(
                Profile.status == ProfileStatus.APPROVED.value
            ),
            public_profiles=await self.profile_repo.count(Profile.is_public),
            pending_payments=await self.payment_repo.count(
                Payment.status == PaymentStatus.PENDING.value
            ),
        )

        users = await self.user_repo.recent(RECENT_LIMIT)
        profiles = await self.profile_repo.recent(RECENT_LIMIT)
        payments = await self.payment_repo.recent(RECENT_LIMIT)

        return Dashboard(
            stats=stats,
            recent_users=[UserRead.model_validate(user) for user in users],
            recent_profiles=[ProfileRead.model_validate(profile) for profile in profiles],
            recent_payments=[PaymentRead.model_validate(payment) for payment in payments],
        )

    async def analytics(self, now: datetime | None = None) -> Analytics:
        """
        本月统计以 UTC 自然月为界；分布统计只覆盖公开可见资料。
        """
        since = month_start(now)

        completed, revenue = await self.analytics_repo.completed_payment_totals(since)
        summary = MonthlySummary(
            new_users=await self.user_repo.count(User.created_at >= since),
            new_profiles=await self.profile_repo.count(Profile.created_at >= since),
            completed_payments=completed,
            revenue=revenue,
        )

        genders = await self.analytics_repo.public_gender_distribution()
        cities = await self.analytics_repo.public_top_cities(TOP_CITIES_LIMIT)

        return Analytics(
            month_start=since,
            this_month=summary,
            gender_distribution=[CountBucket(label=label, count=count) for label, count in genders],
            top_cities=[CountBucket(label=label, count=count) for label, count in cities],
        )

    async def get_user_detail(self, user_id: UUID) -> UserDetail:
        user = await self.user_service.get(user_id)
        profile = await self.profile_repo.get_by_user_id(user_id)
        payments = await self.payment_repo.list_for_user(user_id)

        return UserDetail(
            user=UserRead.model_validate(user),
            profile=ProfileRead.model_validate(profile) if profile else None,
            payments=[PaymentRead.model_validate(payment) for payment in payments],
        )
