"""
File: rishta/utils/masking.py
Description: PII 数据脱敏工具 (Data Masking)

本模块提供敏感信息脱敏功能，用于日志记录时的隐私保护。
婚恋资料属于高敏感数据：日志中只允许出现脱敏后的邮箱 / 手机号，
监护人电话、付款人号码等同样按手机号规则处理。

Author: jinmozhe
Created: 2025-11-26
Updated: 2026-10-12 (Guardian / sender phone keys)
"""

from typing import Any

# ==============================================================================
# 1. 敏感字段黑名单 (大小写不敏感)
# ==============================================================================
SENSITIVE_KEYS = {
    "password",
    "confirm_password",
    "hashed_password",
    "secret",
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "authorization",
}

# 按手机号规则脱敏的字段
PHONE_KEYS = {"phone", "guardian_phone", "sender_number"}

# 按邮箱规则脱敏的字段
EMAIL_KEYS = {"email"}

# ==============================================================================
# 2. 基础脱敏函数
# ==============================================================================


def mask_phone(phone: str | None) -> str:
    """
    手机号脱敏。
    规则: 保留前3位和后4位，中间用 * 替换。
    示例: 03001234567 -> 030****4567
    """
    if not phone or len(phone) < 7:
        return "******"
    return f"{phone[:3]}****{phone[-4:]}"


def mask_email(email: str | None) -> str:
    """
    邮箱脱敏。
    示例: ayesha@example.com -> a***@example.com
    """
    if not email or "@" not in email:
        return "******"

    user_part, domain_part = email.split("@", 1)
    masked_user = "*" * 4 if len(user_part) <= 1 else f"{user_part[0]}***"
    return f"{masked_user}@{domain_part}"


def mask_secret(value: Any) -> str:
    """
    通用机密信息完全掩盖。
    """
    if value is None:
        return ""
    return "******"


# ==============================================================================
# 3. 递归脱敏工具
# ==============================================================================


def mask_sensitive_data(data: Any) -> Any:
    """
    递归遍历数据结构（字典、列表），自动对敏感字段进行脱敏。
    返回副本，不修改原数据。
    """
    if isinstance(data, dict):
        new_data = {}
        for k, v in data.items():
            key = k.lower() if isinstance(k, str) else k
            if key in SENSITIVE_KEYS:
                new_data[k] = mask_secret(v)
            elif key in PHONE_KEYS and isinstance(v, str):
                new_data[k] = mask_phone(v)
            elif key in EMAIL_KEYS and isinstance(v, str):
                new_data[k] = mask_email(v)
            else:
                new_data[k] = mask_sensitive_data(v)
        return new_data

    if isinstance(data, list):
        return [mask_sensitive_data(item) for item in data]

    return data
