import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session

from companion.core.config import settings
from companion.core.errors import register_exception_handlers
from companion.core.logging import configure_logging, LoggingMiddleware, get_logger
from companion.core.rate_limiter import rate_limit_middleware, setup_redis_rate_limiter, limiter, rate_limit_handler
from companion.core.monitoring import MetricsMiddleware, get_metrics, update_health_status, DatabaseMetricsCollector
from companion.core.security import get_current_user
from companion.database.connection import get_db, create_tables, check_database_health, get_db_stats
from companion.routers import admin, ai, ai_models, chats, images, users, workspaces

# Configure logging
configure_logging(settings.log_level, settings.log_format)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("Starting Companion API", version=settings.app_version, environment=settings.environment.value)

    create_tables()

    if settings.rate_limit_enabled and settings.redis_url:
        setup_redis_rate_limiter(settings.redis_url)

    update_health_status("database", check_database_health())
    update_health_status("openai", bool(settings.openai_api_key))
    update_health_status("supabase", bool(settings.supabase_url and settings.supabase_service_role_key))

    logger.info("Application startup complete")
    yield

    logger.info("Shutting down Companion API")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=settings.app_description,
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    **settings.get_cors_config()
)

if settings.metrics_enabled:
    app.add_middleware(MetricsMiddleware)

app.add_middleware(LoggingMiddleware)

if settings.rate_limit_enabled:
    app.middleware("http")(rate_limit_middleware)


@app.get("/health")
async def health_check():
    """Health of the database and configuration of the hosted services"""
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.app_version,
        "environment": settings.environment.value,
        "services": {}
    }

    db_healthy = check_database_health()
    health_status["services"]["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "stats": get_db_stats()
    }
    update_health_status("database", db_healthy)

    openai_configured = bool(settings.openai_api_key)
    health_status["services"]["openai"] = {
        "status": "configured" if openai_configured else "not_configured"
    }
    update_health_status("openai", openai_configured)

    supabase_configured = bool(settings.supabase_url and settings.supabase_service_role_key)
    health_status["services"]["supabase"] = {
        "status": "configured" if supabase_configured else "not_configured"
    }
    update_health_status("supabase", supabase_configured)

    if db_healthy and openai_configured:
        status_code = 200
    else:
        health_status["status"] = "unhealthy"
        status_code = 503

    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    if not settings.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return await get_metrics()


@app.get("/stats")
async def get_stats(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Row counts and runtime configuration"""
    try:
        counts = await DatabaseMetricsCollector.collect_from_db(db)
        return {
            "database": get_db_stats(),
            "entities": counts,
            "application": {
                "version": settings.app_version,
                "environment": settings.environment.value,
                "features": {
                    "rate_limiting": settings.rate_limit_enabled,
                    "metrics": settings.metrics_enabled,
                    "redis": bool(settings.redis_url)
                }
            }
        }
    except Exception as e:
        logger.error("Error collecting stats", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to collect stats")


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment.value,
        "docs_url": "/docs" if settings.is_development else None,
        "health_url": "/health",
        "metrics_url": "/metrics" if settings.metrics_enabled else None
    }


app.include_router(ai_models.router)
app.include_router(ai.router)
app.include_router(images.router)
app.include_router(chats.router)
app.include_router(workspaces.router)
app.include_router(users.router)
app.include_router(admin.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
