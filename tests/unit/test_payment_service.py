"""
File: tests/unit/test_payment_service.py
Description: 付款领域服务测试

本模块测试 PaymentService 的核心业务逻辑：
1. 提交付款 (交易号格式 / 收据上传 / 已付费拦截)
2. 用户取消 (仅本人 + pending)
3. 管理员核实 (单向流转 / 非法目标状态)
4. 付费标记对账 (幂等 / 核实后写入失败的补偿)

Author: jinmozhe
Created: 2026-10-13
"""

import re
import uuid

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from rishta.core.error_code import SystemErrorCode
from rishta.core.exceptions import AppException
from rishta.core.storage import ImageUpload
from rishta.db.models.payment import Payment, PaymentStatus
from rishta.db.models.user import User
from rishta.domains.payments.constants import PaymentErrorCode
from rishta.domains.payments.repository import PaymentRepository
from rishta.domains.payments.schemas import PaymentCreate, VerifyRequest
from rishta.domains.payments.service import PaymentService, generate_transaction_id
from rishta.domains.users.repository import UserRepository

# ------------------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------------------


@pytest.fixture
def payment_service(db_session: AsyncSession, image_store) -> PaymentService:
    return PaymentService(
        repo=PaymentRepository(model=Payment, session=db_session),
        user_repo=UserRepository(model=User, session=db_session),
        store=image_store,
    )


def _payment_in(**overrides) -> PaymentCreate:
    data = {
        "amount": 2500,
        "payment_method": "easypaisa",
        "sender_name": "Ali Raza",
        "sender_number": "03001234567",
        "reference_number": "EP123456",
    }
    data.update(overrides)
    return PaymentCreate.model_validate(data)


async def _is_paid(db_session: AsyncSession, user_id: uuid.UUID) -> bool:
    result = await db_session.execute(select(User.is_paid).where(User.id == user_id))
    return result.scalar_one()


# ------------------------------------------------------------------------------
# 提交
# ------------------------------------------------------------------------------


def test_transaction_id_format() -> None:
    txn = generate_transaction_id()
    assert re.fullmatch(r"TXN\d{13}[A-Z0-9]{5}", txn)
    assert generate_transaction_id() != txn


@pytest.mark.asyncio
async def test_submit_payment_creates_pending_record(payment_service, make_user) -> None:
    user = await make_user()

    payment = await payment_service.submit_payment(user, _payment_in(), None)

    assert payment.status == PaymentStatus.PENDING
    assert payment.user_id == user.id
    assert payment.currency == "PKR"
    assert payment.payment_type == "registration"
    assert payment.receipt_url is None
    assert payment.transaction_id.startswith("TXN")


@pytest.mark.asyncio
async def test_submit_payment_uploads_receipt(payment_service, make_user, image_store, image_bytes) -> None:
    user = await make_user()
    receipt = ImageUpload(filename="receipt.jpg", data=image_bytes("JPEG"))

    payment = await payment_service.submit_payment(user, _payment_in(), receipt)

    assert payment.receipt_key in image_store.files
    assert payment.receipt_key.startswith(f"payments/{user.id}/")
    assert payment.receipt_url.endswith(payment.receipt_key)


@pytest.mark.asyncio
async def test_submit_payment_rejected_for_paid_user(payment_service, make_user) -> None:
    user = await make_user(is_paid=True)

    with pytest.raises(AppException) as exc_info:
        await payment_service.submit_payment(user, _payment_in(), None)

    assert exc_info.value.error == PaymentErrorCode.ALREADY_PAID
    assert exc_info.value.kind.value == "conflict"


@pytest.mark.asyncio
async def test_submit_payment_with_invalid_receipt(payment_service, make_user, image_store) -> None:
    user = await make_user()
    receipt = ImageUpload(filename="receipt.pdf", data=b"%PDF-1.4 not an image")

    with pytest.raises(AppException) as exc_info:
        await payment_service.submit_payment(user, _payment_in(), receipt)

    assert exc_info.value.error == SystemErrorCode.INVALID_PARAMS
    assert image_store.files == {}


def test_payment_schema_rejects_bad_sender_number() -> None:
    with pytest.raises(ValueError):
        _payment_in(sender_number="12345")


# ------------------------------------------------------------------------------
# 取消
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_cancel_own_pending_payment(payment_service, make_user) -> None:
    user = await make_user()
    payment = await payment_service.submit_payment(user, _payment_in(), None)

    cancelled = await payment_service.cancel_payment(user, payment.id)

    assert cancelled.status == PaymentStatus.CANCELLED
    assert await payment_service.list_my_pending_payments(user) == []


@pytest.mark.asyncio
async def test_cannot_cancel_someone_elses_payment(payment_service, make_user) -> None:
    owner = await make_user()
    other = await make_user()
    payment = await payment_service.submit_payment(owner, _payment_in(), None)

    with pytest.raises(AppException) as exc_info:
        await payment_service.cancel_payment(other, payment.id)

    assert exc_info.value.error == PaymentErrorCode.NOT_CANCELLABLE
    assert exc_info.value.kind.value == "not_found"
    assert payment.status == PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_cannot_cancel_twice(payment_service, make_user) -> None:
    user = await make_user()
    payment = await payment_service.submit_payment(user, _payment_in(), None)
    await payment_service.cancel_payment(user, payment.id)

    with pytest.raises(AppException) as exc_info:
        await payment_service.cancel_payment(user, payment.id)

    assert exc_info.value.error == PaymentErrorCode.NOT_CANCELLABLE


# ------------------------------------------------------------------------------
# 核实
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_verify_completed_marks_user_paid(payment_service, make_user, db_session) -> None:
    user = await make_user()
    admin = await make_user(role="admin")
    payment = await payment_service.submit_payment(user, _payment_in(), None)

    verified = await payment_service.verify_payment(
        payment.id, admin, VerifyRequest(status="completed", verification_notes="Checked")
    )

    assert verified.status == PaymentStatus.COMPLETED
    assert verified.verified_by == admin.id
    assert verified.verified_at is not None
    assert verified.verification_notes == "Checked"
    assert await _is_paid(db_session, user.id) is True


@pytest.mark.asyncio
async def test_verify_failed_does_not_mark_user_paid(payment_service, make_user, db_session) -> None:
    user = await make_user()
    admin = await make_user(role="admin")
    payment = await payment_service.submit_payment(user, _payment_in(), None)

    verified = await payment_service.verify_payment(payment.id, admin, VerifyRequest(status="failed"))

    assert verified.status == PaymentStatus.FAILED
    assert await _is_paid(db_session, user.id) is False


@pytest.mark.asyncio
@pytest.mark.parametrize("target", ["pending", "refunded", ""])
async def test_verify_rejects_invalid_target_status(payment_service, make_user, target) -> None:
    user = await make_user()
    admin = await make_user(role="admin")
    payment = await payment_service.submit_payment(user, _payment_in(), None)

    with pytest.raises(AppException) as exc_info:
        await payment_service.verify_payment(payment.id, admin, VerifyRequest(status=target))

    assert exc_info.value.error == PaymentErrorCode.INVALID_STATUS
    assert exc_info.value.kind.value == "validation_error"
    assert payment.status == PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_verify_is_one_way(payment_service, make_user) -> None:
    user = await make_user()
    admin = await make_user(role="admin")
    payment = await payment_service.submit_payment(user, _payment_in(), None)
    await payment_service.verify_payment(payment.id, admin, VerifyRequest(status="failed"))

    with pytest.raises(AppException) as exc_info:
        await payment_service.verify_payment(payment.id, admin, VerifyRequest(status="completed"))

    assert exc_info.value.error == PaymentErrorCode.ALREADY_VERIFIED
    assert payment.status == PaymentStatus.FAILED


@pytest.mark.asyncio
async def test_verify_unknown_payment(payment_service, make_user) -> None:
    admin = await make_user(role="admin")
    missing = uuid.uuid4()

    with pytest.raises(AppException) as exc_info:
        await payment_service.verify_payment(missing, admin, VerifyRequest(status="completed"))

    assert exc_info.value.error == PaymentErrorCode.PAYMENT_NOT_FOUND


async def _set_status_behind_session(db_session: AsyncSession, payment_id: uuid.UUID, status: str) -> None:
    """模拟另一请求已修改状态：直接写库，不同步会话中已加载的对象"""
    await db_session.execute(
        update(Payment)
        .where(Payment.id == payment_id)
        .values(status=status)
        .execution_options(synchronize_session=False)
    )


@pytest.mark.asyncio
async def test_verify_loses_to_concurrent_cancel(payment_service, make_user, db_session) -> None:
    user = await make_user()
    admin = await make_user(role="admin")
    payment = await payment_service.submit_payment(user, _payment_in(), None)
    await _set_status_behind_session(db_session, payment.id, "cancelled")
    # 会话中的对象仍是读取时的 pending
    assert payment.status == PaymentStatus.PENDING

    with pytest.raises(AppException) as exc_info:
        await payment_service.verify_payment(payment.id, admin, VerifyRequest(status="completed"))

    assert exc_info.value.error == PaymentErrorCode.ALREADY_VERIFIED
    stored = await db_session.execute(select(Payment.status).where(Payment.id == payment.id))
    assert stored.scalar_one() == "cancelled"
    assert await _is_paid(db_session, user.id) is False


@pytest.mark.asyncio
async def test_cancel_after_completion_keeps_completed(payment_service, make_user, db_session) -> None:
    user = await make_user()
    admin = await make_user(role="admin")
    payment = await payment_service.submit_payment(user, _payment_in(), None)
    await payment_service.verify_payment(payment.id, admin, VerifyRequest(status="completed"))

    with pytest.raises(AppException) as exc_info:
        await payment_service.cancel_payment(user, payment.id)

    assert exc_info.value.error == PaymentErrorCode.NOT_CANCELLABLE
    stored = await db_session.execute(select(Payment.status).where(Payment.id == payment.id))
    assert stored.scalar_one() == "completed"
    assert await _is_paid(db_session, user.id) is True


@pytest.mark.asyncio
async def test_leave_pending_only_matches_once(payment_service, make_user) -> None:
    user = await make_user()
    payment = await payment_service.submit_payment(user, _payment_in(), None)
    repo = payment_service.repo

    assert await repo.leave_pending(payment.id, {"status": "failed"}) is True
    assert await repo.leave_pending(payment.id, {"status": "completed"}) is False
    assert await repo.leave_pending(payment.id, {"status": "cancelled"}, user_id=user.id) is False
    assert payment.status == "failed"


# ------------------------------------------------------------------------------
# 对账
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_reconcile_paid_flag_is_idempotent(payment_service, make_user, db_session) -> None:
    user = await make_user()
    admin = await make_user(role="admin")
    payment = await payment_service.submit_payment(user, _payment_in(), None)
    await payment_service.verify_payment(payment.id, admin, VerifyRequest(status="completed"))

    assert await payment_service.reconcile_paid_flag(user.id) is False
    assert await payment_service.reconcile_all_paid_flags() == []
    assert await _is_paid(db_session, user.id) is True


@pytest.mark.asyncio
async def test_reconcile_without_completed_payment_is_noop(payment_service, make_user, db_session) -> None:
    user = await make_user()
    await payment_service.submit_payment(user, _payment_in(), None)

    assert await payment_service.reconcile_paid_flag(user.id) is False
    assert await _is_paid(db_session, user.id) is False


@pytest.mark.asyncio
async def test_paid_flag_failure_after_verification_is_repaired_by_sweep(
    payment_service, make_user, db_session, monkeypatch
) -> None:
    """
    核实已提交但 is_paid 写入失败：核实结果保留，周期性对账补记。
    """
    user = await make_user()
    user_id = user.id
    admin = await make_user(role="admin")
    payment = await payment_service.submit_payment(user, _payment_in(), None)

    async def broken_mark_paid(_user_id):
        raise OperationalError("UPDATE users", {}, Exception("connection reset"))

    monkeypatch.setattr(payment_service.user_repo, "mark_paid", broken_mark_paid)

    verified = await payment_service.verify_payment(payment.id, admin, VerifyRequest(status="completed"))

    assert verified.status == PaymentStatus.COMPLETED
    assert await _is_paid(db_session, user_id) is False

    monkeypatch.undo()

    repaired = await payment_service.reconcile_all_paid_flags()

    assert repaired == [user_id]
    assert await _is_paid(db_session, user_id) is True
    assert await payment_service.reconcile_all_paid_flags() == []
