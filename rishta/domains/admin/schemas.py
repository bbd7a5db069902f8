"""
File: rishta/domains/admin/schemas.py
Description: 管理后台 Pydantic 模型 (Schema)

1. DashboardStats / Dashboard: 管理首页计数与最新记录
2. MonthlySummary / Analytics: 本月统计 + 公开资料分布
3. UserDetail: 用户详情 (账号 + 资料 + 付款记录)

Author: jinmozhe
Created: 2026-10-12
"""

from datetime import datetime

from pydantic import BaseModel, Field

from rishta.domains.payments.schemas import PaymentRead
from rishta.domains.profiles.schemas import ProfileRead
from rishta.domains.users.schemas import UserRead


class DashboardStats(BaseModel):
    total_users: int = Field(..., description="注册用户总数")
    paid_users: int = Field(..., description="已付费用户数")
    submitted_profiles: int = Field(..., description="待审核资料数")
    approved_profiles: int = Field(..., description="已通过审核资料数")
    public_profiles: int = Field(..., description="公开可见资料数")
    pending_payments: int = Field(..., description="待核实付款数")


class Dashboard(BaseModel):
    stats: DashboardStats
    recent_users: list[UserRead] = Field(default_factory=list)
    recent_profiles: list[ProfileRead] = Field(default_factory=list)
    recent_payments: list[PaymentRead] = Field(default_factory=list)


class CountBucket(BaseModel):
    """分组计数"""

    label: str
    count: int


class MonthlySummary(BaseModel):
    new_users: int
    new_profiles: int
    completed_payments: int
    revenue: int = Field(..., description="已完成付款金额合计 (默认币种)")


class Analytics(BaseModel):
    month_start: datetime = Field(..., description="统计起点 (本月 1 日 00:00 UTC)")
    this_month: MonthlySummary
    gender_distribution: list[CountBucket] = Field(default_factory=list)
    top_cities: list[CountBucket] = Field(default_factory=list)


class UserDetail(BaseModel):
    """管理端用户详情"""

    user: UserRead
    profile: ProfileRead | None = None
    payments: list[PaymentRead] = Field(default_factory=list)
