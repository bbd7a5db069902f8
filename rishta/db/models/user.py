"""
File: rishta/db/models/user.py
Description: 用户核心账号模型

继承自 UUIDModel，自动拥有 UUID v7 主键与 created_at / updated_at (UTC)。

状态标记 (is_paid / profile_completed) 是业务门槛的唯一真实来源：
鉴权依赖每次请求都从数据库重新读取，不在 Token 或会话中缓存。

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-08 (role / is_paid / profile_completed)
"""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from rishta.db.models.base import UUIDModel


class UserRole(StrEnum):
    """固定角色，无层级"""

    USER = "user"
    ADMIN = "admin"


class User(UUIDModel):
    """
    用户模型 (账号域)
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "users"

    __table_args__ = (
        CheckConstraint("length(trim(email)) > 0", name="email_not_empty"),
        CheckConstraint("length(hashed_password) > 0", name="password_not_empty"),
        CheckConstraint("role IN ('user', 'admin')", name="role_valid"),
    )

    # --------------------------------------------------------------------------
    # 核心凭证
    # --------------------------------------------------------------------------

    # 邮箱：登录凭证，必填且唯一 (统一小写存储)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, comment="邮箱 (登录凭证)"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="密码哈希值 (Argon2id)"
    )

    # --------------------------------------------------------------------------
    # 基础资料
    # --------------------------------------------------------------------------

    name: Mapped[str] = mapped_column(String(50), nullable=False, comment="姓名")

    phone: Mapped[str] = mapped_column(String(20), nullable=False, comment="手机号")

    # --------------------------------------------------------------------------
    # 状态与权限
    # --------------------------------------------------------------------------

    role: Mapped[str] = mapped_column(
        String(10),
        default=UserRole.USER.value,
        server_default=text("'user'"),
        nullable=False,
        comment="角色 (user / admin)",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=text("true"),
        nullable=False,
        comment="是否激活",
    )

    # 付费标记：一旦有付款被核实为 completed 即置为 True (粘性)
    is_paid: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=text("false"),
        nullable=False,
        index=True,
        comment="是否已付费",
    )

    profile_completed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=text("false"),
        nullable=False,
        comment="是否已提交婚恋资料",
    )

    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="最近登录时间 (UTC)"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
