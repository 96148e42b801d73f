"""
FastAPI Application Entry Point.

REST API server for the Catalog Service.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI

from config.settings import settings
from internal.infrastructure.memory import InMemoryCartRepository, InMemoryDocumentCollection
from internal.infrastructure.postgres import (
    PostgresCartRepository,
    PostgresDocumentCollection,
    create_pool,
)
from internal.infrastructure.redis.cache import ProductCacheService, RedisCache
from internal.transport.http.app import create_app, wire_services
from internal.usecase.catalog_policies import PRODUCT_TEXT_CONFIG, PRODUCT_TEXT_FIELDS
from pkg.logger.logger import get_logger, setup_logging


setup_logging(level=settings.LOG_LEVEL, json_format=settings.json_logs)

logger = get_logger(__name__)


# Global resources
db_pool = None
redis_cache = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown of resources.
    """
    global db_pool, redis_cache

    logger.info("Starting Catalog Service API...", storage=settings.STORAGE_BACKEND)

    if settings.use_memory_storage:
        products = InMemoryDocumentCollection("products", text_fields=PRODUCT_TEXT_FIELDS)
        carts = InMemoryCartRepository()
        logger.warning("Using in-memory storage, data is not persisted")
    else:
        try:
            db_pool = await create_pool(
                settings.DATABASE_URL,
                min_size=settings.DB_POOL_MIN_SIZE,
                max_size=settings.DB_POOL_MAX_SIZE,
            )
            logger.info("Database pool created")
        except Exception as e:
            logger.error("Failed to create database pool", error=str(e))
            raise
        products = PostgresDocumentCollection(
            db_pool,
            "products",
            text_fields=PRODUCT_TEXT_FIELDS,
            text_config=PRODUCT_TEXT_CONFIG,
        )
        carts = PostgresCartRepository(db_pool)

    cache_service = None
    if settings.REDIS_URL:
        try:
            redis_cache = RedisCache(redis_url=settings.REDIS_URL, default_ttl=settings.CACHE_TTL)
            await redis_cache.connect()
            cache_service = ProductCacheService(redis_cache)
        except Exception as e:
            logger.warning("Failed to connect to Redis, caching disabled", error=str(e))
            redis_cache = None
    else:
        logger.info("REDIS_URL not set, caching disabled")

    wire_services(products=products, carts=carts, settings=settings, cache=cache_service)

    logger.info("Catalog Service API started successfully")

    yield

    logger.info("Shutting down Catalog Service API...")

    if redis_cache:
        await redis_cache.disconnect()

    if db_pool:
        await db_pool.close()

    logger.info("Catalog Service API shutdown complete")


app = create_app(settings, lifespan=lifespan)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
    )
