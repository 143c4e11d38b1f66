"""
Redis store for live run status.
"""

import redis.asyncio as redis
from typing import Optional

from studio.src.config import get_settings

settings = get_settings()

RUN_STATUS = "studio:run-status"

async def get_redis_client() -> redis.Redis:
    """Get async Redis client."""
    return redis.from_url(settings.redis_url, decode_responses=True)

async def set_live_status(pipeline_id: str, run_id: int, status: str):
    """Record the status of a pipeline's current run."""
    client = await get_redis_client()

    try:
        await client.hset(RUN_STATUS, pipeline_id, f"{run_id}:{status}")
    finally:
        await client.close()

async def get_live_status(pipeline_id: str) -> Optional[dict]:
    """Get the last recorded run status, or None if never run."""
    client = await get_redis_client()

    try:
        value = await client.hget(RUN_STATUS, pipeline_id)
    finally:
        await client.close()

    if value is None:
        return None
    run_id, _, status = value.partition(":")
    return {"run_id": int(run_id), "status": status}
