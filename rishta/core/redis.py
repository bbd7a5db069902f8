"""
File: rishta/core/redis.py
Description: Redis 客户端管理 (Async)

本模块负责：
1. 创建全局 Redis 连接池 (基于 redis-py 的 asyncio 扩展)
2. 提供依赖注入所需的 Redis 客户端生成器
3. 管理连接生命周期 (初始化与关闭)

当前仅用于存储 Refresh Token (key: refresh_token:<token> -> user_id)。
使用 decode_responses=True，读取结果自动解码为 str。

Author: jinmozhe
Created: 2025-12-05
"""

from collections.abc import AsyncGenerator

from redis.asyncio import Redis, from_url

from rishta.core.config import settings

REFRESH_TOKEN_PREFIX = "refresh_token:"

# redis-py 内部维护连接池，全局单例即可
redis_client: Redis = from_url(
    settings.REDIS_URL,
    encoding="utf-8",
    decode_responses=True,
)


def refresh_token_key(token: str) -> str:
    """Refresh Token 在 Redis 中的 Key"""
    return f"{REFRESH_TOKEN_PREFIX}{token}"


async def get_redis() -> AsyncGenerator[Redis, None]:
    """
    获取 Redis 客户端依赖。
    封装为依赖注入，测试中可通过 dependency_overrides 替换。
    """
    yield redis_client


async def close_redis() -> None:
    """
    关闭 Redis 连接池，在 lifespan shutdown 阶段调用。
    """
    await redis_client.aclose()
