"""
File: rishta/domains/payments/schemas.py
Description: 付款领域 Pydantic 模型 (Schema)

本模块定义了付款相关的输入/输出数据结构：
1. PaymentCreate: 用户提交付款凭证
2. VerifyRequest: 管理员核实 (目标状态由 Service 校验)
3. PaymentFilter: 管理端列表筛选
4. PaymentRead: 付款记录响应 (附带 formatted_amount)
5. ReconcileResult: 付费标记对账结果

Author: jinmozhe
Created: 2026-10-11
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from rishta.db.models.payment import PaymentMethod, PaymentStatus, PaymentType
from rishta.domains.users.schemas import validate_phone

# ------------------------------------------------------------------------------
# Input Schemas (输入模型)
# ------------------------------------------------------------------------------


class PaymentCreate(BaseModel):
    """
    提交付款凭证。
    """

    amount: int = Field(..., ge=1, description="金额 (正整数)")
    payment_method: PaymentMethod = Field(..., description="付款方式")
    payment_type: PaymentType = Field(default=PaymentType.REGISTRATION, description="付款类型")
    sender_name: str = Field(..., min_length=2, max_length=50, description="付款人姓名")
    sender_number: str = Field(..., description="付款手机号")
    reference_number: str = Field(..., min_length=3, max_length=20, description="第三方流水号")
    notes: str | None = Field(default=None, max_length=500, description="备注")

    @field_validator("sender_name", "reference_number", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("sender_number")
    @classmethod
    def validate_sender_number(cls, v: str) -> str:
        return validate_phone(v)

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class VerifyRequest(BaseModel):
    """
    管理员核实请求。
    status 只接受 completed / failed / cancelled，其余值由 Service 拒绝为 validation_error。
    """

    status: str = Field(..., description="目标状态 (completed / failed / cancelled)")
    verification_notes: str | None = Field(default=None, max_length=500, description="核实备注")


class PaymentFilter(BaseModel):
    """
    管理端付款列表筛选条件 (Query 参数)。
    """

    status: PaymentStatus | None = None
    payment_method: PaymentMethod | None = None
    payment_type: PaymentType | None = None


# ------------------------------------------------------------------------------
# Output Schemas (输出/响应模型)
# ------------------------------------------------------------------------------


class PaymentRead(BaseModel):
    """
    付款记录响应。
    """

    id: UUID
    user_id: UUID
    amount: int
    currency: str
    payment_method: str
    payment_type: str
    status: str
    transaction_id: str
    reference_number: str | None = None
    sender_number: str
    sender_name: str
    receipt_url: str | None = None
    notes: str | None = None
    verified_by: UUID | None = None
    verified_at: datetime | None = None
    verification_notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def formatted_amount(self) -> str:
        return f"{self.amount:,} {self.currency}"


class ReconcileResult(BaseModel):
    """
    对账结果：本次被补记为已付费的用户。
    """

    updated: int = Field(..., description="本次补记的用户数")
    user_ids: list[UUID] = Field(default_factory=list)
