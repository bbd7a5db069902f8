"""
File: rishta/domains/payments/dependencies.py
Description: 付款领域依赖注入 (DI)

依赖链：
DBSession → PaymentRepository + UserRepository ┐
ImageStore ────────────────────────────────────┴→ PaymentService → PaymentServiceDep

另提供付款表单解析 (multipart：字段 + 可选收据图片)。

Author: jinmozhe
Created: 2026-10-11
"""

from typing import Annotated

from fastapi import Depends, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from rishta.api.deps import DBSession
from rishta.core.storage import ImageStore, ImageUpload, get_image_store, read_uploads
from rishta.db.models.payment import Payment
from rishta.domains.payments.repository import PaymentRepository
from rishta.domains.payments.schemas import PaymentCreate
from rishta.domains.payments.service import PaymentService
from rishta.domains.users.dependencies import UserRepoDep


async def get_payment_repository(session: DBSession) -> PaymentRepository:
    return PaymentRepository(model=Payment, session=session)


PaymentRepoDep = Annotated[PaymentRepository, Depends(get_payment_repository)]


async def get_payment_service(
    repo: PaymentRepoDep,
    user_repo: UserRepoDep,
    store: Annotated[ImageStore, Depends(get_image_store)],
) -> PaymentService:
    return PaymentService(repo=repo, user_repo=user_repo, store=store)


PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]


# ------------------------------------------------------------------------------
# Multipart 表单解析
# ------------------------------------------------------------------------------


async def parse_payment_form(
    amount: Annotated[str, Form()],
    payment_method: Annotated[str, Form()],
    sender_name: Annotated[str, Form()],
    sender_number: Annotated[str, Form()],
    reference_number: Annotated[str, Form()],
    payment_type: Annotated[str | None, Form()] = None,
    notes: Annotated[str | None, Form()] = None,
) -> PaymentCreate:
    """
    表单字段统一按字符串接收，交给 PaymentCreate 校验，保证错误明细格式一致。
    """
    raw = {
        "amount": amount,
        "payment_method": payment_method,
        "sender_name": sender_name,
        "sender_number": sender_number,
        "reference_number": reference_number,
        "notes": notes,
    }
    if payment_type:
        raw["payment_type"] = payment_type

    try:
        return PaymentCreate.model_validate(raw)
    except ValidationError as exc:
        errors = [{**err, "loc": ("body", *err.get("loc", ()))} for err in exc.errors(include_url=False)]
        raise RequestValidationError(errors) from None


PaymentForm = Annotated[PaymentCreate, Depends(parse_payment_form)]


async def get_receipt_upload(
    receipt: Annotated[UploadFile | None, File(description="收据图片 (可选)")] = None,
) -> ImageUpload | None:
    uploads = await read_uploads([receipt] if receipt is not None else None)
    return uploads[0] if uploads else None


ReceiptUpload = Annotated[ImageUpload | None, Depends(get_receipt_upload)]
