"""Health check endpoints."""

import asyncio
import logging
from datetime import UTC, datetime

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.ai import assistant_service
from api.deps_admin import get_current_admin_user
from infrastructure.config import get_settings
from infrastructure.database import get_db
from infrastructure.database.models import Profile

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def _database_ok(db: AsyncSession) -> bool:
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=5.0)
    except TimeoutError:
        logger.error("Health check DB timeout")
        return False
    except SQLAlchemyError as e:
        logger.error("Health check DB error: %s", e)
        return False
    return True


async def _redis_status() -> str:
    if not settings.redis_url:
        return "not configured"
    client = aioredis.from_url(settings.redis_url)
    try:
        await asyncio.wait_for(client.ping(), timeout=2.0)
        return "ok"
    except (TimeoutError, RedisError, OSError) as e:
        logger.warning("Health check Redis error: %s", e)
        return "degraded"
    finally:
        await client.aclose()


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness probe. The database is required; Redis is optional."""
    db_ok = await _database_ok(db)
    return {
        "ready": db_ok,
        "database": "ok" if db_ok else "unavailable",
        "redis": await _redis_status(),
    }


@router.get("/health/live")
async def liveness_check():
    """Liveness probe."""
    return {"alive": True}


@router.get("/health/services")
async def services_check(admin_user: Profile = Depends(get_current_admin_user)):
    """Configuration status of the external services."""
    services = {
        "anthropic": {
            "configured": assistant_service.is_configured,
            "model": settings.anthropic_model,
        },
        "stripe": {
            "configured": bool(settings.stripe_secret_key),
            "webhook_secret_set": bool(settings.stripe_webhook_secret),
            "price_id_set": bool(settings.stripe_pro_price_id),
        },
        "sanity": {"configured": bool(settings.sanity_project_id)},
        "supabase_admin": {
            "configured": bool(settings.supabase_url and settings.supabase_service_role_key)
        },
    }
    all_configured = all(s["configured"] for s in services.values())
    return {
        "status": "healthy" if all_configured else "degraded",
        "services": services,
        "timestamp": datetime.now(UTC).isoformat(),
    }
