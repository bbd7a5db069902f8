"""
File: rishta/domains/auth/schemas.py
Description: 认证领域 Pydantic 模型 (Schema)

本模块定义了认证相关的输入/输出数据结构：
1. Token: 登录/刷新成功后返回的双 Token 结构 (附带 next_step)
2. LoginRequest: 邮箱密码登录请求参数
3. RefreshRequest: 刷新 Token 请求参数

注册请求复用 users 领域的 UserCreate。

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-10 (email login, next_step)
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from rishta.domains.auth.constants import NextStep


class Token(BaseModel):
    """
    双 Token 响应结构 (Access + Refresh)。
    """

    access_token: str = Field(..., description="访问令牌 (JWT, 短效)")
    refresh_token: str = Field(..., description="刷新令牌 (随机串, 长效, 用于续期)")
    token_type: str = Field(default="bearer", description="令牌类型 (通常为 bearer)")
    expires_in: int = Field(..., description="Access Token 有效期 (秒)")
    next_step: NextStep = Field(..., description="客户端下一步应引导的页面")


class LoginRequest(BaseModel):
    """
    邮箱密码登录请求参数。
    """

    email: EmailStr = Field(..., description="邮箱", examples=["user@example.com"])
    password: str = Field(..., min_length=1, description="用户密码")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class RefreshRequest(BaseModel):
    """
    刷新 Token 请求参数。
    """

    refresh_token: str = Field(..., description="有效的刷新令牌")
