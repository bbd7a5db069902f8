"""
File: rishta/domains/payments/constants.py
Description: 付款领域常量定义 (错误码 + 成功提示)
Namespace: payments.*

Author: jinmozhe
Created: 2026-10-11
"""

from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from rishta.core.error_code import BaseErrorCode
from rishta.db.models.payment import PaymentStatus

# 管理员核实时允许设置的目标状态
VERIFY_TARGET_STATUSES = frozenset(
    {PaymentStatus.COMPLETED.value, PaymentStatus.FAILED.value, PaymentStatus.CANCELLED.value}
)


class PaymentErrorCode(BaseErrorCode):
    """
    付款领域错误定义
    Tuple Structure: (HTTP_Status, Code_String, Default_Message)
    """

    PAYMENT_NOT_FOUND = (HTTP_404_NOT_FOUND, "payments.not_found", "Payment not found")

    # 他人的付款与非 pending 付款不做区分，避免泄露存在性
    NOT_CANCELLABLE = (
        HTTP_404_NOT_FOUND,
        "payments.not_cancellable",
        "Payment not found or cannot be cancelled",
    )

    INVALID_STATUS = (HTTP_400_BAD_REQUEST, "payments.invalid_status", "Invalid status")

    ALREADY_PAID = (
        HTTP_409_CONFLICT,
        "payments.already_paid",
        "You have already completed payment.",
    )
    ALREADY_VERIFIED = (
        HTTP_409_CONFLICT,
        "payments.already_verified",
        "Only pending payments can be verified",
    )


class PaymentMsg:
    """
    付款领域成功提示文案
    """

    SUBMITTED = "Payment submitted successfully! We will verify it within 24 hours."
    CANCELLED = "Payment cancelled successfully"
    RECONCILED = "Paid flags reconciled"

    @staticmethod
    def verified(status: str) -> str:
        return f"Payment {status} successfully"
