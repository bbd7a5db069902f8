"""
File: rishta/domains/users/schemas.py
Description: 用户领域 Pydantic 模型 (Schema)

本模块定义了用户相关的输入/输出数据结构：
1. UserCreate: 用户注册参数 (包含密码明文与确认密码)
2. UserRead: 用户信息响应 (包含 ID, 状态标记, 时间戳, 屏蔽密码)
3. UserFilter: 管理端用户列表筛选条件
4. UserStatusUpdate: 管理端修改用户状态 (PATCH 语义)

规范：
- 严格遵循 Pydantic V2 写法 (ConfigDict)
- 全面采用 Python 3.11+ 新语法 (X | None)
- 手机号统一使用巴基斯坦号码格式校验 (+92 / 0 前缀可选，后接 10 位数字)
- 响应模型开启 from_attributes=True 以支持 ORM 转换

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-10 (email login, paid / profile flags)
"""

import re
from datetime import datetime
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from rishta.db.models.user import UserRole

# ------------------------------------------------------------------------------
# Constants (常量定义)
# ------------------------------------------------------------------------------

PHONE_PATTERN = re.compile(r"^(\+92|0)?[0-9]{10}$")
PHONE_ERROR_MESSAGE = "Please enter a valid Pakistani phone number"

NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")


def validate_phone(v: str) -> str:
    """校验手机号格式 (供多个领域复用)"""
    v = v.strip()
    if not PHONE_PATTERN.match(v):
        raise ValueError(PHONE_ERROR_MESSAGE)
    return v


# ------------------------------------------------------------------------------
# Input Schemas (输入模型)
# ------------------------------------------------------------------------------


class UserCreate(BaseModel):
    """
    用户注册模型。
    """

    name: str = Field(..., min_length=2, max_length=50, description="姓名 (仅字母与空格)")
    email: EmailStr = Field(..., description="邮箱 (登录凭证, 唯一)")
    phone: str = Field(..., description="手机号", examples=["03001234567", "+923001234567"])
    password: str = Field(..., min_length=6, max_length=128, description="明文密码 (至少含一位数字)")
    confirm_password: str = Field(..., description="确认密码")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not NAME_PATTERN.match(v):
            raise ValueError("Name can only contain letters and spaces")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v: str) -> str:
        return validate_phone(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not any(ch.isdigit() for ch in v):
            raise ValueError("Password must contain at least one number")
        return v

    @model_validator(mode="after")
    def check_passwords_match(self) -> "UserCreate":
        if self.password != self.confirm_password:
            raise ValueError("Password confirmation does not match password")
        return self


class UserFilter(BaseModel):
    """
    管理端用户列表筛选条件 (Query 参数)。
    """

    role: UserRole | None = Field(default=None, description="角色")
    is_paid: bool | None = Field(default=None, description="是否已付费")
    is_active: bool | None = Field(default=None, description="是否激活")
    search: str | None = Field(default=None, max_length=100, description="姓名/邮箱/手机号模糊搜索")


class UserStatusUpdate(BaseModel):
    """
    管理端修改用户状态。仅更新传入的字段。
    """

    is_active: bool | None = Field(default=None, description="是否激活")
    is_paid: bool | None = Field(default=None, description="是否已付费")
    role: UserRole | None = Field(default=None, description="角色")


# ------------------------------------------------------------------------------
# Output Schemas (输出/响应模型)
# ------------------------------------------------------------------------------


class UserBrief(BaseModel):
    """用户摘要 (嵌入资料/付款响应中)"""

    id: UUID
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class UserRead(BaseModel):
    """
    用户读取模型 (响应)。
    屏蔽了 hashed_password 字段。
    """

    id: UUID = Field(..., description="用户 ID (UUID v7)")
    name: str = Field(..., description="姓名")
    email: str = Field(..., description="邮箱")
    phone: str = Field(..., description="手机号")
    role: str = Field(..., description="角色")
    is_active: bool = Field(..., description="账号状态")
    is_paid: bool = Field(..., description="是否已付费")
    profile_completed: bool = Field(..., description="是否已提交婚恋资料")
    last_login_at: datetime | None = Field(default=None, description="最近登录时间 (UTC)")
    created_at: datetime = Field(..., description="创建时间 (UTC)")
    updated_at: datetime = Field(..., description="更新时间 (UTC)")

    # Pydantic V2 配置：允许从 ORM 对象读取数据
    model_config = ConfigDict(from_attributes=True)
