import redis.asyncio as redis
from studio.core.config import settings

redis_client = None

def get_redis_client() -> redis.Redis:
    """
    Shared Redis client backing the local cache.
    """
    global redis_client
    if redis_client is None:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True
        )
    return redis_client
