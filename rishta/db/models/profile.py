"""
File: rishta/db/models/profile.py
Description: 婚恋资料模型 (1:1 User)

设计要点：
1. user_id 唯一约束保证每个用户最多一份资料，创建时并发重复提交由数据库兜底
2. 检索维度 (姓名/年龄/性别/城市等) 独立成列并建索引，其余资料分区以 JSON 文档存储
3. photos 为有序 JSON 列表: [{"url", "key", "is_primary"}]，只允许整体赋值 (不做原地修改)
4. 公开可见性由 is_public 派生: status == approved AND published
   published 只是管理员手动上下架的开关，不再作为独立的"状态"

采用 "No-Relationship" 模式，不显式定义 ORM relationship。

Author: jinmozhe
Created: 2026-10-08
"""

import uuid
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    and_,
    text,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from rishta.db.models.base import JSONDocument, UUIDModel


class ProfileStatus(StrEnum):
    """
    资料审核状态。
    PUBLISHED 仅为兼容历史数据保留，状态机不会写入该值。
    """

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"


class Gender(StrEnum):
    MALE = "male"
    FEMALE = "female"


class Profile(UUIDModel):
    """
    婚恋资料表
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "profiles"

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'submitted', 'approved', 'rejected', 'published')",
            name="status_valid",
        ),
        CheckConstraint("age BETWEEN 18 AND 80", name="age_range"),
        Index("ix_profiles_gender_published", "gender", "published"),
        Index("ix_profiles_city_published", "city", "published"),
        Index("ix_profiles_age_published", "age", "published"),
    )

    # --------------------------------------------------------------------------
    # 归属 (创建后不可变)
    # --------------------------------------------------------------------------

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        unique=True,
        nullable=False,
        comment="所属用户ID",
    )

    # --------------------------------------------------------------------------
    # 个人信息 (检索维度)
    # --------------------------------------------------------------------------

    name: Mapped[str] = mapped_column(String(50), nullable=False, comment="姓名")
    age: Mapped[int] = mapped_column(Integer, nullable=False, comment="年龄")
    gender: Mapped[str] = mapped_column(String(10), nullable=False, comment="性别")
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False, comment="出生日期")
    height_cm: Mapped[int | None] = mapped_column(Integer, nullable=True, comment="身高 (cm)")
    marital_status: Mapped[str] = mapped_column(String(20), nullable=False, comment="婚姻状况")
    city: Mapped[str] = mapped_column(String(100), nullable=False, comment="城市")
    country: Mapped[str] = mapped_column(
        String(100), nullable=False, default="Pakistan", comment="国家"
    )
    nationality: Mapped[str] = mapped_column(
        String(100), nullable=False, default="Pakistani", comment="国籍"
    )

    # --------------------------------------------------------------------------
    # 资料分区 (JSON 文档，对状态机不透明)
    # --------------------------------------------------------------------------

    education: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    occupation: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    family_info: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    religious_info: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    preferences: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    contact_info: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)

    about: Mapped[str | None] = mapped_column(Text, nullable=True, comment="自我介绍")
    expectations: Mapped[str | None] = mapped_column(Text, nullable=True, comment="择偶期望")

    # --------------------------------------------------------------------------
    # 照片
    # --------------------------------------------------------------------------

    photos: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list, comment="照片列表 (url/key/is_primary)"
    )

    # --------------------------------------------------------------------------
    # 审核与上架
    # --------------------------------------------------------------------------

    status: Mapped[str] = mapped_column(
        String(20),
        default=ProfileStatus.DRAFT.value,
        server_default=text("'draft'"),
        nullable=False,
        index=True,
        comment="审核状态",
    )

    published: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=text("false"),
        nullable=False,
        comment="上架开关 (仅 approved 时有意义)",
    )

    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, comment="审核管理员ID"
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="审核时间 (UTC)"
    )
    rejection_reason: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="驳回原因 (仅 rejected 时存在)"
    )

    # --------------------------------------------------------------------------
    # 浏览统计 (不参与状态机)
    # --------------------------------------------------------------------------

    views: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False, comment="浏览次数"
    )
    last_viewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="最近浏览时间 (UTC)"
    )

    # --------------------------------------------------------------------------
    # 派生属性
    # --------------------------------------------------------------------------

    @hybrid_property
    def is_public(self) -> bool:
        """公开可见 = 已通过审核且处于上架状态"""
        return self.status == ProfileStatus.APPROVED and bool(self.published)

    @is_public.inplace.expression
    @classmethod
    def _is_public_expression(cls) -> Any:
        return and_(cls.status == ProfileStatus.APPROVED.value, cls.published.is_(True))

    @property
    def primary_photo(self) -> dict[str, Any] | None:
        return next((photo for photo in self.photos or [] if photo.get("is_primary")), None)
