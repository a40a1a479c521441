import asyncio
import json
import logging

from redis.exceptions import ConnectionError as RedisConnectionError
import redis.asyncio as redis

from smartfit import config
from smartfit.errors import ApiError

logger = logging.getLogger(__name__)

ZONE_LINE_KEY = "queue:zone:{zone_id}"
ENTRY_KEY = "queue:entry:{entry_id}"
AUTH_RATE_KEY = "ratelimit:auth:{client}"

MIRROR_RETRY_DELAY = 0.5


async def get_redis():
    redis_client = redis.Redis.from_url(
        config.REDIS_URL, decode_responses=True, max_connections=500
    )
    try:
        yield redis_client
    finally:
        await redis_client.aclose()


async def get_redis_session():
    return redis.Redis.from_url(config.REDIS_URL, decode_responses=True)


async def redis_execute(redis_client, command, *args, retries=3, delay=0.5):
    for attempt in range(retries):
        try:
            return await getattr(redis_client, command)(*args)
        except RedisConnectionError as e:
            if attempt == retries - 1:
                raise ApiError(500, "Redis error", str(e))
            logger.warning("Redis %s failed (attempt %d): %s", command, attempt + 1, e)
            await asyncio.sleep(delay)


async def _run_pipeline(redis_client, fill, retries=3):
    """Run a mirror write with retries. The database stays authoritative, so a
    write that keeps failing is logged and left for the startup rebuild."""
    for attempt in range(retries):
        try:
            async with redis_client.pipeline() as pipe:
                fill(pipe)
                return await pipe.execute()
        except RedisConnectionError as e:
            logger.warning("Redis pipeline failed (attempt %d): %s", attempt + 1, e)
            if attempt < retries - 1:
                await asyncio.sleep(MIRROR_RETRY_DELAY)
    logger.error("Giving up on Redis mirror write; line is rebuilt on next startup")
    return None


async def mirror_join(redis_client, entry):
    """Add a waiting entry to its zone's line."""

    def fill(pipe):
        pipe.zadd(
            ZONE_LINE_KEY.format(zone_id=entry.zone_id),
            {str(entry.id): entry.joined_at.timestamp()},
        )
        pipe.set(
            ENTRY_KEY.format(entry_id=entry.id),
            json.dumps({"queueId": entry.id, "userId": entry.user_id, "zoneId": entry.zone_id}),
        )

    return await _run_pipeline(redis_client, fill)


async def mirror_leave(redis_client, entry):
    def fill(pipe):
        pipe.zrem(ZONE_LINE_KEY.format(zone_id=entry.zone_id), str(entry.id))
        pipe.delete(ENTRY_KEY.format(entry_id=entry.id))

    return await _run_pipeline(redis_client, fill)


async def read_zone_line(redis_client, zone_id):
    entry_ids = await redis_execute(
        redis_client, "zrange", ZONE_LINE_KEY.format(zone_id=zone_id), 0, -1
    )
    line = []
    for index, entry_id in enumerate(entry_ids):
        raw = await redis_execute(redis_client, "get", ENTRY_KEY.format(entry_id=entry_id))
        if not raw:
            continue
        info = json.loads(raw)
        line.append(
            {"queueId": info["queueId"], "userId": info["userId"], "position": index + 1}
        )
    return line


async def clear_queue_data(redis_client):
    async for key in redis_client.scan_iter(match="queue:*"):
        await redis_client.delete(key)


async def rebuild_queue_mirror(redis_client, entries):
    await clear_queue_data(redis_client)
    for entry in entries:
        await mirror_join(redis_client, entry)
    logger.info("Rebuilt Redis queue mirror with %d waiting entries", len(entries))


async def hit_rate_limit(redis_client, client: str) -> bool:
    """Count one auth attempt; True when the client is over the limit."""
    key = AUTH_RATE_KEY.format(client=client)
    count = await redis_execute(redis_client, "incr", key)
    if count == 1:
        await redis_execute(redis_client, "expire", key, config.AUTH_RATE_WINDOW_SECONDS)
    return count > config.AUTH_RATE_LIMIT
