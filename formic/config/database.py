"""
Redis connection pool management
"""
from typing import Optional
import redis.asyncio as redis
from formic.config.settings import settings

class DatabaseConfig:
    """Redis backend configuration"""

    def __init__(self):
        self.REDIS_HOST = settings.REDIS_HOST
        self.REDIS_PORT = settings.REDIS_PORT
        self.client: Optional[redis.Redis] = None

    async def connect_db(self):
        """Open the connection pool (unless a client was injected) and ping it"""
        try:
            if self.client is None:
                pool = redis.ConnectionPool(
                    host=self.REDIS_HOST,
                    port=self.REDIS_PORT,
                    max_connections=settings.REDIS_MAX_CONNECTIONS,
                    health_check_interval=settings.REDIS_HEALTH_CHECK_INTERVAL,
                    decode_responses=True,
                )
                self.client = redis.Redis(connection_pool=pool)
            await self.client.ping()
            print(f"✅ Connected to Redis: {self.REDIS_HOST}:{self.REDIS_PORT}")
        except Exception as e:
            print(f"❌ Error connecting to Redis: {e}")
            raise

    async def close_db(self):
        """Close the connection pool"""
        if self.client:
            await self.client.aclose()
            self.client = None
            print("✅ Redis connection closed")

    def get_client(self) -> redis.Redis:
        """Get the pooled client"""
        if self.client is None:
            raise Exception("Database not connected")
        return self.client

# Global database instance
db_config = DatabaseConfig()
