"""
Health check and status endpoints
"""
from datetime import datetime

from fastapi import APIRouter

from app import __version__
from app.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status():
    """Which integrations are configured"""
    settings = get_settings()
    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "features": {
            "seoworks_webhook": bool(settings.seoworks_webhook_secret),
            "seoworks_auto_create": settings.seoworks_auto_create_requests,
            "llm_chat": bool(settings.enable_llm_chat and settings.anthropic_api_key),
            "email_notifications": bool(settings.resend_api_key),
        },
        "timestamp": datetime.utcnow().isoformat()
    }
