"""
File: rishta/core/error_code.py
Description: 全局错误码基类、错误类别与系统级错误定义

定义结构 Tuple(http_status, code, message):
1. http_status: HTTP 响应状态码 (4xx/5xx)
2. code: 字符串业务码 (格式: domain.reason)
3. message: 默认的人类可读错误消息

错误类别 (kind) 由 http_status 推导，调用方据此区分：
validation_error / unauthenticated / unauthorized / not_found /
conflict / precondition_failed / upstream_unavailable / internal_error

Author: jinmozhe
Created: 2026-01-15
Updated: 2026-10-12 (ErrorKind)
"""

from enum import Enum, StrEnum

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_412_PRECONDITION_FAILED,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class ErrorKind(StrEnum):
    """失败结果的结构化类别"""

    VALIDATION_ERROR = "validation_error"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PRECONDITION_FAILED = "precondition_failed"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    INTERNAL_ERROR = "internal_error"


_KIND_BY_STATUS: dict[int, ErrorKind] = {
    HTTP_400_BAD_REQUEST: ErrorKind.VALIDATION_ERROR,
    HTTP_401_UNAUTHORIZED: ErrorKind.UNAUTHENTICATED,
    HTTP_403_FORBIDDEN: ErrorKind.UNAUTHORIZED,
    HTTP_404_NOT_FOUND: ErrorKind.NOT_FOUND,
    HTTP_409_CONFLICT: ErrorKind.CONFLICT,
    HTTP_412_PRECONDITION_FAILED: ErrorKind.PRECONDITION_FAILED,
    HTTP_503_SERVICE_UNAVAILABLE: ErrorKind.UPSTREAM_UNAVAILABLE,
}


def kind_for_status(http_status: int) -> ErrorKind:
    """HTTP 状态码 -> 错误类别，未登记的一律视为 internal_error"""
    return _KIND_BY_STATUS.get(http_status, ErrorKind.INTERNAL_ERROR)


class BaseErrorCode(Enum):
    """
    错误码枚举基类
    所有业务领域的错误码 Enum 必须继承此类。

    Value Tuple Definition:
    (http_status, code, msg)
    """

    @property
    def http_status(self) -> int:
        """获取映射的 HTTP 状态码"""
        return self.value[0]

    @property
    def code(self) -> str:
        """获取业务错误标识 (domain.reason)"""
        return self.value[1]

    @property
    def msg(self) -> str:
        """获取默认错误描述信息"""
        return self.value[2]

    @property
    def kind(self) -> ErrorKind:
        """获取错误类别"""
        return kind_for_status(self.http_status)


class SystemErrorCode(BaseErrorCode):
    """
    系统通用错误定义 (System Domain)
    """

    # HTTP 400: 客户端参数错误 (Pydantic 校验会自动映射到这里)
    INVALID_PARAMS = (HTTP_400_BAD_REQUEST, "system.invalid_params", "Invalid parameters")

    # HTTP 401: 身份认证失败
    UNAUTHORIZED = (HTTP_401_UNAUTHORIZED, "system.unauthorized", "Authentication required")
    TOKEN_EXPIRED = (HTTP_401_UNAUTHORIZED, "system.token_expired", "Token has expired")

    # HTTP 403: 已认证但权限不足
    FORBIDDEN = (HTTP_403_FORBIDDEN, "system.forbidden", "Access denied")

    # HTTP 500: 服务端故障 (需要监控报警)
    INTERNAL_ERROR = (
        HTTP_500_INTERNAL_SERVER_ERROR,
        "system.internal_error",
        "An error occurred",
    )

    # HTTP 503: 下游依赖 (数据库 / 图片存储) 不可用
    DB_UNAVAILABLE = (
        HTTP_503_SERVICE_UNAVAILABLE,
        "system.db_unavailable",
        "Storage is temporarily unavailable, please try again",
    )
    IMAGE_STORE_UNAVAILABLE = (
        HTTP_503_SERVICE_UNAVAILABLE,
        "system.image_store_unavailable",
        "Image upload is temporarily unavailable, please try again",
    )
