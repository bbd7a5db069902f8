"""
File: rishta/domains/payments/service.py
Description: 付款领域服务 (业务逻辑层)

本模块封装付款核实流程：
1. 用户提交付款凭证 (可附收据图片)，生成交易号，状态 pending
2. 用户取消自己仍为 pending 的付款
3. 管理员核实: pending -> completed | failed | cancelled (单向)
4. 付费标记对账 (reconcile):
   付款核实与用户 is_paid 是两次独立写入，
   核实为 completed 后立即执行一次对账；失败只记日志，由周期性全量对账补偿。

Author: jinmozhe
Created: 2026-10-11
Updated: 2026-10-19 (conditional pending transitions)
"""

import secrets
import string
import time
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from rishta.core.config import settings
from rishta.core.error_code import SystemErrorCode
from rishta.core.exceptions import AppException
from rishta.core.logging import logger
from rishta.core.response import Page, normalize_page
from rishta.core.storage import ImageStore, ImageUpload, StoredImage, upload_images
from rishta.db.models.base import utcnow
from rishta.db.models.payment import Payment, PaymentStatus
from rishta.db.models.user import User
from rishta.domains.payments.constants import VERIFY_TARGET_STATUSES, PaymentErrorCode
from rishta.domains.payments.repository import PaymentRepository
from rishta.domains.payments.schemas import (
    PaymentCreate,
    PaymentFilter,
    PaymentRead,
    VerifyRequest,
)
from rishta.domains.users.repository import UserRepository
from rishta.utils.masking import mask_phone

_TXN_ALPHABET = string.ascii_uppercase + string.digits


def generate_transaction_id() -> str:
    """TXN + 毫秒时间戳 + 5 位大写字母数字"""
    suffix = "".join(secrets.choice(_TXN_ALPHABET) for _ in range(5))
    return f"TXN{int(time.time() * 1000)}{suffix}"


class PaymentService:
    """
    付款领域服务。
    """

    def __init__(self, repo: PaymentRepository, user_repo: UserRepository, store: ImageStore):
        self.repo = repo
        self.user_repo = user_repo
        self.store = store

    # --------------------------------------------------------------------------
    # 用户操作
    # --------------------------------------------------------------------------

    async def submit_payment(
        self, user: User, data: PaymentCreate, receipt: ImageUpload | None
    ) -> Payment:
        if user.is_paid:
            raise AppException(PaymentErrorCode.ALREADY_PAID)

        uploaded: list[StoredImage] = []
        if receipt is not None:
            uploaded = await upload_images(self.store, [receipt], f"payments/{user.id}")

        values = data.model_dump(mode="json")
        values.update(
            user_id=user.id,
            currency=settings.DEFAULT_CURRENCY,
            status=PaymentStatus.PENDING.value,
            transaction_id=generate_transaction_id(),
        )
        if uploaded:
            values.update(receipt_url=uploaded[0].url, receipt_key=uploaded[0].key)

        try:
            payment = await self.repo.create(values)
            await self.repo.session.commit()
        except SQLAlchemyError as exc:
            await self.repo.session.rollback()
            logger.opt(exception=exc).error("Payment write failed, cleaning up receipt")
            await self.store.delete_many_quietly([image.key for image in uploaded])
            raise AppException(SystemErrorCode.DB_UNAVAILABLE) from None

        logger.bind(
            user_id=str(user.id),
            payment_id=str(payment.id),
            transaction_id=payment.transaction_id,
            sender_number=mask_phone(payment.sender_number),
        ).info("Payment submitted")
        return payment

    async def list_my_payments(self, user: User) -> list[Payment]:
        return await self.repo.list_for_user(user.id)

    async def list_my_pending_payments(self, user: User) -> list[Payment]:
        return await self.repo.list_for_user(user.id, PaymentStatus.PENDING)

    async def cancel_payment(self, user: User, payment_id: UUID) -> Payment:
        """
        取消付款：仅限本人且仍为 pending。
        他人的付款、不存在的付款、非 pending 付款统一返回 not_found。
        """
        changed = await self.repo.leave_pending(
            payment_id, {"status": PaymentStatus.CANCELLED.value}, user_id=user.id
        )
        if not changed:
            raise AppException(PaymentErrorCode.NOT_CANCELLABLE)
        await self.repo.session.commit()

        payment = await self.get_admin_payment(payment_id)
        # 条件更新不会刷新 onupdate 列，重新加载完整行
        await self.repo.session.refresh(payment)

        logger.bind(user_id=str(user.id), payment_id=str(payment_id)).info("Payment cancelled by owner")
        return payment

    # --------------------------------------------------------------------------
    # 管理员操作
    # --------------------------------------------------------------------------

    async def verify_payment(self, payment_id: UUID, admin: User, req: VerifyRequest) -> Payment:
        """
        核实付款。

        1. 目标状态必须是 completed / failed / cancelled
        2. 付款必须仍为 pending (单向流转)
        3. 写入核实信息并提交
        4. completed 时对付款用户执行一次对账 (独立提交，失败不回滚核实结果)
        """
        if req.status not in VERIFY_TARGET_STATUSES:
            raise AppException(PaymentErrorCode.INVALID_STATUS)

        payment = await self.get_admin_payment(payment_id)
        if payment.status != PaymentStatus.PENDING:
            raise AppException(PaymentErrorCode.ALREADY_VERIFIED)

        # 读取之后可能已被用户取消，以条件更新的结果为准
        changed = await self.repo.leave_pending(
            payment_id,
            {
                "status": req.status,
                "verified_by": admin.id,
                "verified_at": utcnow(),
                "verification_notes": req.verification_notes,
            },
        )
        if not changed:
            raise AppException(PaymentErrorCode.ALREADY_VERIFIED)
        await self.repo.session.commit()
        await self.repo.session.refresh(payment)

        logger.bind(
            payment_id=str(payment_id), admin_id=str(admin.id), status=req.status
        ).info("Payment verified")

        if payment.status == PaymentStatus.COMPLETED:
            user_id = payment.user_id
            try:
                await self.reconcile_paid_flag(user_id)
            except SQLAlchemyError as exc:
                await self.repo.session.rollback()
                logger.opt(exception=exc).bind(
                    payment_id=str(payment_id), user_id=str(user_id)
                ).error("Paid flag update failed after payment completion, left for reconciliation")
                # rollback 会使会话内对象过期，重新加载已提交的核实结果
                await self.repo.session.refresh(payment)

        return payment

    async def get_admin_payment(self, payment_id: UUID) -> Payment:
        payment = await self.repo.get(payment_id)
        if not payment:
            raise AppException(PaymentErrorCode.PAYMENT_NOT_FOUND)
        return payment

    async def list_admin_payments(self, filters: PaymentFilter, page: int | None) -> Page[PaymentRead]:
        page = normalize_page(page)
        page_size = settings.ADMIN_PAGE_SIZE
        payments, total = await self.repo.list_for_admin(filters, page=page, page_size=page_size)
        return Page[PaymentRead](
            items=[PaymentRead.model_validate(payment) for payment in payments],
            total=total,
            page=page,
            page_size=page_size,
        )

    # --------------------------------------------------------------------------
    # 付费标记对账
    # --------------------------------------------------------------------------

    async def reconcile_paid_flag(self, user_id: UUID) -> bool:
        """
        确保用户在存在 completed 付款时被标记为已付费。
        可重复执行；返回本次是否实际发生了变更。
        """
        if not await self.repo.has_completed(user_id):
            return False

        changed = await self.user_repo.mark_paid(user_id)
        await self.repo.session.commit()

        if changed:
            logger.bind(user_id=str(user_id)).info("User marked as paid")
        return changed

    async def reconcile_all_paid_flags(self) -> list[UUID]:
        """
        全量对账：补记所有存在 completed 付款但未标记已付费的用户。
        """
        user_ids = await self.repo.user_ids_needing_reconcile()
        for user_id in user_ids:
            await self.user_repo.mark_paid(user_id)
        await self.repo.session.commit()

        logger.bind(updated=len(user_ids)).info("Paid flag reconciliation finished")
        return user_ids
