"""
File: rishta/domains/payments/router.py
Description: 付款领域 HTTP 路由层

router (挂载于 /payments, CurrentUser)：
提交付款凭证 / 付款历史 / 待核实付款 / 取消付款

admin_router (挂载于 /admin/payments, AdminUser)：
列表 / 详情 / 核实 / 付费标记全量对账

Author: jinmozhe
Created: 2026-10-11
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from rishta.api.deps import AdminUser, CurrentUser
from rishta.core.response import Page, ResponseModel
from rishta.domains.payments.constants import PaymentMsg
from rishta.domains.payments.dependencies import PaymentForm, PaymentServiceDep, ReceiptUpload
from rishta.domains.payments.schemas import (
    PaymentFilter,
    PaymentRead,
    ReconcileResult,
    VerifyRequest,
)

router = APIRouter()
admin_router = APIRouter()


# ------------------------------------------------------------------------------
# 用户
# ------------------------------------------------------------------------------


@router.post(
    "",
    response_model=ResponseModel[PaymentRead],
    status_code=status.HTTP_201_CREATED,
    summary="提交付款凭证",
    description="multipart 表单，可附收据图片 receipt。已付费用户返回 conflict。",
)
async def submit_payment(
    request: Request,
    current_user: CurrentUser,
    data: PaymentForm,
    receipt: ReceiptUpload,
    service: PaymentServiceDep,
) -> ResponseModel[PaymentRead]:
    payment = await service.submit_payment(current_user, data, receipt)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=PaymentRead.model_validate(payment),
        message=PaymentMsg.SUBMITTED,
        request_id=req_id,
    )


@router.get(
    "/history",
    response_model=ResponseModel[list[PaymentRead]],
    summary="我的付款历史",
)
async def payment_history(
    request: Request,
    current_user: CurrentUser,
    service: PaymentServiceDep,
) -> ResponseModel[list[PaymentRead]]:
    payments = await service.list_my_payments(current_user)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=[PaymentRead.model_validate(payment) for payment in payments],
        request_id=req_id,
    )


@router.get(
    "/pending",
    response_model=ResponseModel[list[PaymentRead]],
    summary="我的待核实付款",
)
async def pending_payments(
    request: Request,
    current_user: CurrentUser,
    service: PaymentServiceDep,
) -> ResponseModel[list[PaymentRead]]:
    payments = await service.list_my_pending_payments(current_user)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=[PaymentRead.model_validate(payment) for payment in payments],
        request_id=req_id,
    )


@router.post(
    "/{payment_id}/cancel",
    response_model=ResponseModel[PaymentRead],
    summary="取消付款",
    description="仅可取消本人仍为 pending 的付款，否则统一返回 not_found。",
)
async def cancel_payment(
    request: Request,
    payment_id: UUID,
    current_user: CurrentUser,
    service: PaymentServiceDep,
) -> ResponseModel[PaymentRead]:
    payment = await service.cancel_payment(current_user, payment_id)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=PaymentRead.model_validate(payment),
        message=PaymentMsg.CANCELLED,
        request_id=req_id,
    )


# ------------------------------------------------------------------------------
# 管理端
# ------------------------------------------------------------------------------


@admin_router.get(
    "",
    response_model=ResponseModel[Page[PaymentRead]],
    summary="付款列表 (管理)",
)
async def list_payments(
    request: Request,
    admin: AdminUser,
    filters: Annotated[PaymentFilter, Query()],
    service: PaymentServiceDep,
    page: Annotated[int | None, Query(description="页码 (从 1 开始)")] = None,
) -> ResponseModel[Page[PaymentRead]]:
    result = await service.list_admin_payments(filters, page)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=result, request_id=req_id)


@admin_router.post(
    "/reconcile",
    response_model=ResponseModel[ReconcileResult],
    summary="付费标记全量对账",
    description="为所有存在 completed 付款但未标记已付费的用户补记 is_paid。可重复执行。",
)
async def reconcile_paid_flags(
    request: Request,
    admin: AdminUser,
    service: PaymentServiceDep,
) -> ResponseModel[ReconcileResult]:
    user_ids = await service.reconcile_all_paid_flags()
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=ReconcileResult(updated=len(user_ids), user_ids=user_ids),
        message=PaymentMsg.RECONCILED,
        request_id=req_id,
    )


@admin_router.get(
    "/{payment_id}",
    response_model=ResponseModel[PaymentRead],
    summary="付款详情 (管理)",
)
async def read_payment(
    request: Request,
    payment_id: UUID,
    admin: AdminUser,
    service: PaymentServiceDep,
) -> ResponseModel[PaymentRead]:
    payment = await service.get_admin_payment(payment_id)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(data=PaymentRead.model_validate(payment), request_id=req_id)


@admin_router.post(
    "/{payment_id}/verify",
    response_model=ResponseModel[PaymentRead],
    summary="核实付款",
    description="status 取 completed / failed / cancelled；仅 pending 付款可核实。completed 时用户标记为已付费。",
)
async def verify_payment(
    request: Request,
    payment_id: UUID,
    req: VerifyRequest,
    admin: AdminUser,
    service: PaymentServiceDep,
) -> ResponseModel[PaymentRead]:
    payment = await service.verify_payment(payment_id, admin, req)
    req_id = getattr(request.state, "request_id", None)

    return ResponseModel.success(
        data=PaymentRead.model_validate(payment),
        message=PaymentMsg.verified(payment.status),
        request_id=req_id,
    )
