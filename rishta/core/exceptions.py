"""
File: rishta/core/exceptions.py
Description: 业务异常类与全局异常处理器

本模块遵循 v2.1 架构规范：
1. 业务异常基类（AppException）接受 BaseErrorCode 枚举
2. 全局异常处理器自动将异常映射为：语义化 HTTP 状态码 + 字符串业务码 + 错误类别
3. 使用 ResponseModel.fail() 构造统一的失败响应信封
4. 每个请求独立失败，任何异常都不会导致进程退出

Author: jinmozhe
Created: 2025-11-24
Updated: 2026-10-12 (ErrorKind, DB 不可用映射)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from rishta.core.error_code import BaseErrorCode, SystemErrorCode, kind_for_status
from rishta.core.logging import logger
from rishta.core.response import ResponseModel
from rishta.utils.masking import mask_sensitive_data

# ------------------------------------------------------------------------------
# 1. 自定义业务异常类
# ------------------------------------------------------------------------------


class AppException(Exception):
    """
    应用基础异常类。

    用法示例:
        raise AppException(ProfileErrorCode.PROFILE_EXISTS)
        raise AppException(SystemErrorCode.INVALID_PARAMS, message="Too many files")
    """

    def __init__(
        self,
        error: BaseErrorCode,
        message: str = "",
        data: Any = None,
    ):
        # 自动从枚举中解构: (HTTP状态, 业务码, 默认文案)
        self.error = error
        self.http_status = error.http_status
        self.code = error.code
        self.kind = error.kind
        self.message = message or error.msg
        self.data = data
        super().__init__(self.message)


# ------------------------------------------------------------------------------
# 2. 辅助函数
# ------------------------------------------------------------------------------


def _get_request_id(request: Request) -> str:
    """尝试从 request.state 获取 request_id，如果不存在则返回 'unknown'"""
    return str(getattr(request.state, "request_id", "unknown"))


def _readable_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    将 Pydantic 错误列表裁剪为可 JSON 序列化的字段级明细。
    ctx 中可能包含异常对象，input 可能包含密码，均不回传。
    """
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type", "value_error"),
        }
        for err in errors
    ]


# ------------------------------------------------------------------------------
# 3. 全局异常处理器 (Handlers)
# ------------------------------------------------------------------------------


async def app_exception_handler(request: Request, exc: AppException) -> ORJSONResponse:
    """
    处理自定义业务异常 (AppException)
    """
    request_id = _get_request_id(request)

    logger.bind(
        request_id=request_id,
        code=exc.code,
        kind=exc.kind.value,
        http_status=exc.http_status,
        message=exc.message,
    ).warning("Business exception occurred")

    response_model = ResponseModel.fail(
        code=exc.code,
        kind=exc.kind.value,
        message=exc.message,
        data=exc.data,
        request_id=request_id,
    )

    return ORJSONResponse(
        status_code=exc.http_status,
        content=response_model.model_dump(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """
    处理 Pydantic 校验异常 (FastAPI 默认抛出 422)
    映射目标: HTTP 400 Bad Request / Code: system.invalid_params
    """
    request_id = _get_request_id(request)

    errors = _readable_errors(list(exc.errors()))
    first_error = errors[0] if errors else {"field": "unknown", "message": "Invalid parameter"}
    readable_message = f"{first_error['field'] or 'body'}: {first_error['message']}"

    logger.bind(
        request_id=request_id,
        detail=readable_message,
        raw_errors=mask_sensitive_data(errors),
    ).warning("Request validation failed")

    error = SystemErrorCode.INVALID_PARAMS
    response_model = ResponseModel.fail(
        code=error.code,
        kind=error.kind.value,
        message=readable_message,
        data={"errors": errors},
        request_id=request_id,
    )

    return ORJSONResponse(
        status_code=error.http_status,
        content=response_model.model_dump(),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    """
    处理框架层面的 HTTP 异常 (如 404 Not Found, 405 Method Not Allowed)
    """
    request_id = _get_request_id(request)

    code_str = "system.not_found" if exc.status_code == 404 else "system.http_error"

    logger.bind(
        request_id=request_id,
        status_code=exc.status_code,
        detail=str(exc.detail),
    ).warning("Framework HTTP exception occurred")

    response_model = ResponseModel.fail(
        code=code_str,
        kind=kind_for_status(exc.status_code).value,
        message=str(exc.detail),
        request_id=request_id,
    )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=response_model.model_dump(),
    )


async def db_unavailable_handler(
    request: Request, exc: OperationalError
) -> ORJSONResponse:
    """
    数据库连接层面的故障 (连接被拒绝 / 超时)，映射为 upstream_unavailable。
    """
    request_id = _get_request_id(request)

    logger.opt(exception=exc).bind(request_id=request_id).error(
        "Document store unavailable"
    )

    error = SystemErrorCode.DB_UNAVAILABLE
    response_model = ResponseModel.fail(
        code=error.code,
        kind=error.kind.value,
        message=error.msg,
        request_id=request_id,
    )

    return ORJSONResponse(
        status_code=error.http_status,
        content=response_model.model_dump(),
    )


async def general_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """
    处理所有未捕获的异常 (500 Internal Server Error)
    屏蔽内部细节，返回通用系统错误
    """
    request_id = _get_request_id(request)

    logger.opt(exception=exc).bind(request_id=request_id).error(
        "Unhandled system exception occurred"
    )

    error = SystemErrorCode.INTERNAL_ERROR
    response_model = ResponseModel.fail(
        code=error.code,
        kind=error.kind.value,
        message=error.msg,
        request_id=request_id,
    )

    return ORJSONResponse(
        status_code=error.http_status,
        content=response_model.model_dump(),
    )


# ------------------------------------------------------------------------------
# 4. 异常处理器注册函数
# ------------------------------------------------------------------------------


def register_exception_handlers(app: FastAPI) -> None:
    """
    统一注册所有异常处理器。
    """
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore
    app.add_exception_handler(OperationalError, db_unavailable_handler)  # type: ignore
    app.add_exception_handler(Exception, general_exception_handler)
