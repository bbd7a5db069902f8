"""
File: rishta/domains/users/constants.py
Description: 用户领域常量定义 (错误码枚举 + 成功提示)
Namespace: users.*
"""

from starlette.status import HTTP_403_FORBIDDEN, HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from rishta.core.error_code import BaseErrorCode


class UserErrorCode(BaseErrorCode):
    """用户领域错误码"""

    # 格式: (HTTP状态, 业务码, 默认文案)

    EMAIL_EXIST = (HTTP_409_CONFLICT, "users.email_exist", "User already exists with this email")
    USER_NOT_FOUND = (HTTP_404_NOT_FOUND, "users.not_found", "User not found")
    PAYMENT_REQUIRED = (
        HTTP_403_FORBIDDEN,
        "users.payment_required",
        "Please complete your payment first",
    )


class UserMsg:
    """用户领域成功提示文案"""

    STATUS_UPDATED = "User status updated successfully"
