from redis import Redis

from .config import settings

# None when REDIS_URL is not configured: events are skipped and master
# locks fall back to in-process locks
redis_client: Redis | None = (
    Redis.from_url(settings.redis_url, socket_timeout=2.0)
    if settings.redis_url
    else None
)
