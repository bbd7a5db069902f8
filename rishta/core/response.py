"""
File: rishta/core/response.py
Description: 统一响应信封（Unified Response Envelope）与分页结构

本模块定义了全站统一的 API 响应格式。
所有 HTTP 接口必须遵循此契约返回数据：
- 成功: code="success", kind=None
- 失败: code="domain.reason", kind=错误类别 (validation_error / not_found ...)

Author: jinmozhe
Created: 2025-11-24
Updated: 2026-10-12 (Page envelope, error kind)
"""

import math
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar, cast

from pydantic import BaseModel, ConfigDict, Field, computed_field

T = TypeVar("T")


class ResponseBase(BaseModel):
    """
    响应基类
    """

    model_config = ConfigDict(from_attributes=True)

    code: str = Field(default="success", description="业务状态码")
    kind: str | None = Field(default=None, description="失败类别 (成功时为空)")
    message: str = Field(default="Success", description="响应消息")
    request_id: str | None = Field(default=None, description="请求追踪ID")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="响应生成时间",
    )


class ResponseModel(ResponseBase, Generic[T]):
    """
    统一响应信封
    """

    data: T | None = Field(default=None, description="业务数据")

    @classmethod
    def success(
        cls,
        data: T | None = None,
        message: str = "Success",
        request_id: str | None = None,
    ) -> "ResponseModel[T]":
        """
        构造成功响应
        """
        # 强制将 Pydantic 模型转换为 JSON 安全的字典
        if hasattr(data, "model_dump"):
            data = cast(Any, data).model_dump(mode="json")

        return cls(
            code="success",
            message=message,
            data=data,
            request_id=request_id,
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        kind: str | None = None,
        data: Any = None,
        request_id: str | None = None,
    ) -> "ResponseModel[Any]":
        """
        构造失败响应
        """
        return cls(
            code=code,
            kind=kind,
            message=message,
            data=data,
            request_id=request_id,
        )


class Page(BaseModel, Generic[T]):
    """
    分页结果 (1-based page)
    """

    items: list[T] = Field(default_factory=list, description="当前页数据")
    total: int = Field(..., description="总记录数")
    page: int = Field(..., description="当前页码 (从 1 开始)")
    page_size: int = Field(..., description="每页条数")

    # 附带分页导航字段，便于前端直接渲染翻页器
    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        if not self.page_size:
            return 1
        return max(1, math.ceil(self.total / self.page_size))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_prev(self) -> bool:
        return self.page > 1


def normalize_page(page: int | None) -> int:
    """页码 <= 0 或缺省时按第 1 页处理"""
    if page is None or page < 1:
        return 1
    return page
