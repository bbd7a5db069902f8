"""
File: rishta/domains/auth/constants.py
Description: 认证领域常量定义 (错误码 + 成功提示)
Namespace: auth.*

遵循 v2.1 架构规范:
1. Error 定义: 继承 BaseErrorCode，包含 (HTTP状态, 业务码, 默认文案)
2. Msg 定义: 纯字符串常量，用于 Router 返回成功响应

Author: jinmozhe
Created: 2026-01-15
Updated: 2026-10-10
"""

from enum import StrEnum

from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from rishta.core.error_code import BaseErrorCode

# ==============================================================================
# 1. 错误码定义 (Error Codes)
# 用于 Service 层抛出异常: raise AppException(AuthError.INVALID_CREDENTIALS)
# ==============================================================================


class AuthError(BaseErrorCode):
    """
    认证领域错误定义
    Tuple Structure: (HTTP_Status, Code_String, Default_Message)
    """

    # 登录失败的通用错误 (安全掩码)，用户不存在与密码错误不做区分，防止枚举攻击
    INVALID_CREDENTIALS = (
        HTTP_401_UNAUTHORIZED,
        "auth.invalid_credentials",
        "Invalid email or password",
    )

    REFRESH_TOKEN_INVALID = (
        HTTP_401_UNAUTHORIZED,
        "auth.refresh_token_invalid",
        "Refresh token is invalid or expired",
    )

    # 账号状态异常
    ACCOUNT_DISABLED = (
        HTTP_403_FORBIDDEN,
        "auth.account_disabled",
        "Your account has been deactivated. Please contact support.",
    )


# ==============================================================================
# 2. 登录后的下一步 (替代服务端重定向)
# ==============================================================================


class NextStep(StrEnum):
    """未付费 -> 付款；已付费未建档 -> 创建资料；否则 -> 个人面板"""

    PAYMENT = "payment"
    PROFILE = "profile"
    DASHBOARD = "dashboard"


# ==============================================================================
# 3. 成功提示语 (Success Messages)
# ==============================================================================


class AuthMsg:
    """
    认证领域成功提示文案
    """

    LOGIN_SUCCESS = "Welcome back!"
    REGISTER_SUCCESS = "Registration successful! Please log in to continue."
    LOGOUT_SUCCESS = "Logged out successfully"
    REFRESH_SUCCESS = "Token refreshed successfully"
