"""
File: rishta/db/models/payment.py
Description: 付款记录模型 (N:1 User)

每次付款尝试一条记录，状态单向流转：
pending -> completed | failed | cancelled (三者均为终态)

核实信息 (verified_by / verified_at / verification_notes) 仅在离开 pending 时写入。
付款核实为 completed 与用户 is_paid 标记是两次独立写入，
由 PaymentService.reconcile_paid_flag 负责幂等补偿。

Author: jinmozhe
Created: 2026-10-09
"""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from rishta.db.models.base import UUIDModel


class PaymentStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod(StrEnum):
    EASYPAISA = "easypaisa"
    JAZZCASH = "jazzcash"
    BANK_TRANSFER = "bank-transfer"
    CASH = "cash"


class PaymentType(StrEnum):
    REGISTRATION = "registration"
    INTERNATIONAL = "international"
    PREMIUM = "premium"
    OTHER = "other"


class Payment(UUIDModel):
    """
    付款记录表
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "payments"

    __table_args__ = (
        CheckConstraint("amount > 0", name="amount_positive"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'cancelled')",
            name="status_valid",
        ),
        Index("ix_payments_user_id_status", "user_id", "status"),
        Index("ix_payments_status_created_at", "status", "created_at"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, comment="付款用户ID"
    )

    # --------------------------------------------------------------------------
    # 金额与方式
    # --------------------------------------------------------------------------

    amount: Mapped[int] = mapped_column(Integer, nullable=False, comment="金额 (整数)")
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="PKR", server_default=text("'PKR'"), comment="币种"
    )
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, comment="付款方式")
    payment_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentType.REGISTRATION.value,
        server_default=text("'registration'"),
        comment="付款类型",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        server_default=text("'pending'"),
        comment="状态",
    )

    # --------------------------------------------------------------------------
    # 付款凭证
    # --------------------------------------------------------------------------

    transaction_id: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, comment="系统交易号 (TXN...)"
    )
    reference_number: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="第三方流水号"
    )
    sender_number: Mapped[str] = mapped_column(String(20), nullable=False, comment="付款手机号")
    sender_name: Mapped[str] = mapped_column(String(50), nullable=False, comment="付款人姓名")
    receipt_url: Mapped[str | None] = mapped_column(String(500), nullable=True, comment="收据图片URL")
    receipt_key: Mapped[str | None] = mapped_column(String(255), nullable=True, comment="收据图片Key")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True, comment="用户备注")

    # --------------------------------------------------------------------------
    # 核实信息 (仅离开 pending 时写入)
    # --------------------------------------------------------------------------

    verified_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, comment="核实管理员ID"
    )
    verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="核实时间 (UTC)"
    )
    verification_notes: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="核实备注"
    )

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING
