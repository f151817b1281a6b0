"""
Dealer SEO Hub
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.api import analytics, auth, chat, dealerships, health, packages, requests, seoworks
from app.config import get_settings
from app.middleware.auth_middleware import AuthMiddleware
from app.utils.errors import DealerSeoError
from app.utils.logger import log

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    from app.models.base import SessionLocal, init_db
    from app.services import auth_service

    init_db()
    log.info("Database initialized")

    db = SessionLocal()
    try:
        auth_service.seed_initial_user(db)
    finally:
        db.close()

    if not settings.seoworks_webhook_secret:
        log.warning("SEOWORKS_WEBHOOK_SECRET is not set - SEOWorks webhooks will be rejected")

    yield

    log.info("Shutting down application")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    SEO fulfillment dashboard for automotive dealerships

    - Package tiers with monthly deliverable quotas
    - SEO requests and their lifecycle
    - SEOWorks task webhooks reconciled into requests and usage
    - Per-dealership GA4 / Search Console reporting
    - SEO chat assistant
    """,
    lifespan=lifespan
)


# ── Error handling ───────────────────────────────────────

@app.exception_handler(DealerSeoError)
async def dealer_seo_error_handler(request: Request, exc: DealerSeoError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    content = {"error": exc.message}
    if exc.details is not None and not settings.is_production:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    content = {"error": "Invalid request"}
    if not settings.is_production:
        content["details"] = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ── Middleware ───────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Session-based authentication middleware
app.add_middleware(AuthMiddleware)

# ── Routers ──────────────────────────────────────────────

app.include_router(auth.router)
app.include_router(health.router, tags=["health"])
app.include_router(packages.router)
app.include_router(requests.router)
app.include_router(dealerships.router)
app.include_router(seoworks.router)
app.include_router(analytics.router)
app.include_router(chat.router)


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "packages": "GET /packages",
            "requests": "GET|POST /requests",
            "request_status": "PATCH /requests/{id}/status",
            "dealerships": "GET /dealerships",
            "package_progress": "GET /dealerships/{id}/package-progress",
            "analytics": "GET /dealerships/{id}/analytics",
            "chat": "POST /chat",
            "seoworks_webhook": "POST /seoworks/webhook",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
