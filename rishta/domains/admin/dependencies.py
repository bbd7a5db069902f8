"""
File: rishta/domains/admin/dependencies.py
Description: 管理后台依赖注入 (DI)

依赖链：
UserService + ProfileRepository + PaymentRepository + AnalyticsRepository → AdminService

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Annotated

from fastapi import Depends

from rishta.api.deps import DBSession
from rishta.domains.admin.repository import AnalyticsRepository
from rishta.domains.admin.service import AdminService
from rishta.domains.payments.dependencies import PaymentRepoDep
from rishta.domains.profiles.dependencies import ProfileRepoDep
from rishta.domains.users.dependencies import UserServiceDep


async def get_analytics_repository(session: DBSession) -> AnalyticsRepository:
    return AnalyticsRepository(session=session)


async def get_admin_service(
    user_service: UserServiceDep,
    profile_repo: ProfileRepoDep,
    payment_repo: PaymentRepoDep,
    analytics_repo: Annotated[AnalyticsRepository, Depends(get_analytics_repository)],
) -> AdminService:
    return AdminService(
        user_service=user_service,
        profile_repo=profile_repo,
        payment_repo=payment_repo,
        analytics_repo=analytics_repo,
    )


AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
