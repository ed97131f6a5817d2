"""GMB Dashboard: FastAPI Application Entry Point.

Reporting backend for the hospital Google Business Profile dashboard.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gmb_dashboard.config import settings
from gmb_dashboard.core.errors import install_error_handlers
from gmb_dashboard.database import init_db, test_connection, db_url
from gmb_dashboard.scheduler.jobs import start_scheduler, stop_scheduler
from gmb_dashboard.api.alert_routes import router as alert_router
from gmb_dashboard.api.auth_routes import router as auth_router
from gmb_dashboard.api.data_routes import router as data_router
from gmb_dashboard.api.gmb_routes import router as gmb_router
from gmb_dashboard.api.report_routes import router as report_router
from gmb_dashboard.api.user_routes import router as user_router
from gmb_dashboard.core.logging import get_logger

logger = get_logger("main")


IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 GMB Dashboard starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    db_ok = test_connection()
    if db_ok:
        try:
            init_db()
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Database NOT connected, endpoints will fail")
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("GMB Dashboard shut down")


app = FastAPI(
    title="GMB Dashboard",
    description="Google Business Profile insights, reviews and keyword rankings for a hospital network.",
    version=settings.api_version,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

# Routers
app.include_router(auth_router)
app.include_router(data_router)
app.include_router(user_router)
app.include_router(alert_router)
app.include_router(report_router)
app.include_router(gmb_router)


@app.get("/api", tags=["System"])
async def api_root():
    return {"success": True, "message": "Backend API is running", "version": settings.api_version}


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "gmb-dashboard",
        "version": settings.api_version,
    }


@app.get("/debug/db", tags=["System"])
async def debug_db():
    """Check database connectivity."""
    from gmb_dashboard.database import _mask_url

    error = None
    connected = False
    try:
        connected = test_connection()
    except Exception as e:
        error = str(e)

    backend = "postgresql" if db_url.startswith("postgresql") else "sqlite"
    return {
        "connected": connected,
        "backend": backend,
        "url": _mask_url(db_url),
        "environment": "serverless" if IS_SERVERLESS else "local",
        "error": error,
    }
