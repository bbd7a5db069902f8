"""
File: rishta/db/models/__init__.py
Description: ORM 模型注册表

本模块负责：
1. 导入所有业务模型 (User, Profile, Payment)
2. 导入基类 (Base, UUIDModel, Mixins)
3. 导出它们供 Alembic (env.py) 自动发现 metadata

注意：
每当新增一个 Model 文件，必须在此处导入，
否则 Alembic autogenerate 无法检测到新表。

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-09 (Profile / Payment)
"""

# 1. 导入基类与组件
from rishta.db.models.base import (
    Base,
    TimestampMixin,
    UUIDBase,
    UUIDModel,
)

# 2. 导入业务模型
# 注意：新增模型必须在此处导入，否则 Alembic 无法识别
from rishta.db.models.payment import Payment, PaymentMethod, PaymentStatus, PaymentType
from rishta.db.models.profile import Gender, Profile, ProfileStatus
from rishta.db.models.user import User, UserRole

# 3. 显式导出 (供 Alembic 识别)
__all__ = [
    # 基类
    "Base",
    "UUIDBase",
    "UUIDModel",
    "TimestampMixin",
    # 业务模型
    "User",
    "UserRole",
    "Profile",
    "ProfileStatus",
    "Gender",
    "Payment",
    "PaymentStatus",
    "PaymentMethod",
    "PaymentType",
]
