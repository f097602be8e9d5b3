"""Redis response caching for read-heavy endpoints (statistics)."""
import logging
from typing import Any, Callable
from urllib.parse import parse_qsl, urlencode

from fastapi_cache import FastAPICache
from fastapi_cache.backends.redis import RedisBackend
from fastapi_cache.decorator import cache
from redis.asyncio import Redis
from redis.exceptions import RedisError

from localehub.config import get_settings

logger = logging.getLogger(__name__)

CACHE_PREFIX = "localehub-api-cache"
STATISTICS_NAMESPACE = "translation-statistics"

_cache_ready = False


def scope_key_builder(
    func: Callable[..., Any],
    namespace: str,
    request,
    response,
    *args,
    **kwargs,
) -> str:
    # feature_id / project_id in any order address the same scope
    query = urlencode(sorted((k, v) for k, v in parse_qsl(str(request.url.query)) if v))
    return f"{namespace}:{request.url.path}?{query}"


def init_response_cache(redis: Redis) -> None:
    global _cache_ready
    FastAPICache.init(RedisBackend(redis), prefix=CACHE_PREFIX)
    _cache_ready = True


def response_cache(expire: int, namespace: str):
    """Cache the decorated endpoint when Redis caching is configured, otherwise leave it untouched."""
    settings = get_settings()
    if not (settings.enable_response_cache and settings.redis_url):
        return lambda func: func
    return cache(expire=expire, namespace=namespace, key_builder=scope_key_builder)


async def invalidate_namespace(namespace: str) -> None:
    """Drop every cached response of ``namespace``; a no-op until the cache is initialized."""
    if not _cache_ready:
        return
    try:
        await FastAPICache.clear(namespace=namespace)
    except RedisError as e:
        logger.warning(f"Failed to clear response cache {namespace}: {type(e).__name__}: {e}")
