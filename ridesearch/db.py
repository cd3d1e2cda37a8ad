"""
Database connection and initialization.
"""

import logging
from typing import Optional

import asyncpg
import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


async def connect_postgres(database_url: str) -> asyncpg.Pool:
    """Create the PostgreSQL pool and make sure the rides table exists"""
    try:
        pool = await asyncpg.create_pool(database_url, min_size=2, max_size=10)
        logger.info("PostgreSQL connection pool created")
    except (asyncpg.PostgresError, OSError) as e:
        logger.error(f"Failed to connect to PostgreSQL: {e}")
        raise

    await create_tables(pool)
    return pool


async def connect_redis(redis_url: str, environment: str = "development") -> Optional[redis.Redis]:
    """
    Connect to Redis.

    Outside production an unreachable server is logged and None is returned,
    so the engine runs with the local cache tier only.
    """
    client = redis.from_url(redis_url, decode_responses=True)
    try:
        await client.ping()
        logger.info("Redis connection established")
        return client
    except (RedisError, OSError) as e:
        await client.close()
        if environment == "production":
            logger.error(f"Failed to connect to Redis: {e}")
            raise
        logger.warning(f"Redis unavailable, continuing without distributed cache: {e}")
        return None


async def close_connections(
    pg_pool: Optional[asyncpg.Pool] = None,
    redis_client: Optional[redis.Redis] = None
):
    """Close database connections"""
    if pg_pool:
        await pg_pool.close()
        logger.info("PostgreSQL connection pool closed")

    if redis_client:
        await redis_client.close()
        logger.info("Redis connection closed")


async def create_tables(pool: asyncpg.Pool):
    """Create database tables if they don't exist"""
    async with pool.acquire() as conn:
        # Rides are stored as ride-management documents
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS rides (
                id TEXT PRIMARY KEY,
                data JSONB NOT NULL,
                updated_at TIMESTAMP NOT NULL DEFAULT NOW()
            )
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_rides_route
            ON rides ((data->>'status'), (data->>'departureDate'),
                      (data#>>'{origin,city}'), (data#>>'{destination,city}'));
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_rides_published_at ON rides ((data->>'publishedAt'));
        """)

        logger.info("Database tables created/verified")
