"""
File: rishta/api_router.py
Description: 根 API 路由聚合层

本模块负责：
1. 聚合所有业务领域的 Router (auth, users, profiles, payments, admin)
2. 统一设置路由前缀 (如 /auth, /admin/profiles)
3. 统一设置标签 (Tags) 用于 OpenAPI 文档分组

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-12 (Profiles / Payments / Admin)
"""

from fastapi import APIRouter

# 导入领域路由
from rishta.domains.admin.router import router as admin_router
from rishta.domains.auth.router import router as auth_router
from rishta.domains.payments.router import admin_router as payments_admin_router
from rishta.domains.payments.router import router as payments_router
from rishta.domains.profiles.router import admin_router as profiles_admin_router
from rishta.domains.profiles.router import router as profiles_router
from rishta.domains.users.router import router as users_router

# 创建根 API 路由
api_router = APIRouter()

# ------------------------------------------------------------------------------
# 注册领域路由
# ------------------------------------------------------------------------------

# 1. 认证模块 (注册 / 登录 / 刷新 / 登出)
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])

# 2. 用户模块
api_router.include_router(users_router, prefix="/users", tags=["users"])

# 3. 婚恋资料 (用户端 + 公开浏览)
api_router.include_router(profiles_router, prefix="/profiles", tags=["profiles"])

# 4. 付款 (用户端)
api_router.include_router(payments_router, prefix="/payments", tags=["payments"])

# 5. 管理端
api_router.include_router(profiles_admin_router, prefix="/admin/profiles", tags=["admin"])
api_router.include_router(payments_admin_router, prefix="/admin/payments", tags=["admin"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])
