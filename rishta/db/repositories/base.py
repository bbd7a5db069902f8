"""
File: rishta/db/repositories/base.py
Description: 通用异步 Repository 基类 (CRUD + 分页)

本模块定义了 BaseRepository，封装了通用的 CRUD 操作。
所有领域的 Repository 应继承此类，以减少样板代码。

特性：
- 泛型支持: BaseRepository[ModelType]
- 纯异步: 基于 sqlalchemy.ext.asyncio
- 安全增强: update 操作自动过滤核心系统字段 (id, user_id, created_at)
- 分页: paginate() 统一执行 count + 排序 + offset/limit

事务边界由 Service 层控制，Repository 只 flush 不 commit。

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-09 (paginate)
"""

from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import UnaryExpression

from rishta.db.models.base import Base

# 定义泛型变量
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    通用 CRUD 仓储基类。

    参数:
    - ModelType: SQLAlchemy 模型类 (如 Profile)
    """

    # 受保护的字段，禁止通过通用 update 方法修改
    PROTECTED_FIELDS: ClassVar[set[str]] = {"id", "user_id", "created_at", "updated_at"}

    def __init__(self, model: type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    # --------------------------------------------------------------------------
    # 查询操作 (Read)
    # --------------------------------------------------------------------------

    async def get(self, id: Any) -> ModelType | None:
        """根据主键 ID 查询单条记录"""
        return await self.session.get(self.model, id)

    async def count(self, *conditions: ColumnElement[bool]) -> int:
        """
        按条件统计记录数。

        Args:
            *conditions: WHERE 条件 (AND 组合)，为空时统计全表
        """
        stmt = select(func.count()).select_from(self.model).where(*conditions)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def paginate(
        self,
        conditions: list[ColumnElement[bool]],
        *,
        page: int,
        page_size: int,
        order_by: list[UnaryExpression[Any]] | None = None,
    ) -> tuple[list[ModelType], int]:
        """
        条件分页查询。

        Args:
            conditions: WHERE 条件列表 (AND 组合)
            page: 页码 (从 1 开始，调用方已规范化)
            page_size: 每页条数
            order_by: 排序表达式，缺省为 created_at DESC, id DESC (最新优先)

        Returns:
            (当前页记录列表, 总记录数)
        """
        total = await self.count(*conditions)

        if order_by is None:
            order_by = [
                self.model.created_at.desc(),  # type: ignore[attr-defined]
                self.model.id.desc(),  # type: ignore[attr-defined]
            ]

        stmt = (
            select(self.model)
            .where(*conditions)
            .order_by(*order_by)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def recent(self, limit: int, *conditions: ColumnElement[bool]) -> list[ModelType]:
        """最新创建的 N 条记录"""
        items, _ = await self.paginate(list(conditions), page=1, page_size=limit)
        return items

    # --------------------------------------------------------------------------
    # 写入操作 (Create / Update)
    # --------------------------------------------------------------------------

    async def create(self, obj_in: dict[str, Any]) -> ModelType:
        """
        创建新记录。

        注意：此方法会自动 flush 到数据库以获取 ID，但不会 commit（由 Service 层控制事务）。
        """
        db_obj = self.model(**obj_in)

        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)

        return db_obj

    async def update(self, db_obj: ModelType, obj_in: dict[str, Any]) -> ModelType:
        """
        更新现有记录。
        会自动过滤 PROTECTED_FIELDS 中的敏感字段(如 id, user_id)。
        """
        safe_data = {k: v for k, v in obj_in.items() if k not in self.PROTECTED_FIELDS}
        db_obj.update(**safe_data)  # type: ignore[attr-defined]

        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)

        return db_obj

    async def save(self, db_obj: ModelType) -> ModelType:
        """
        持久化已在内存中修改过的对象 (状态机操作后调用)。
        """
        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj
