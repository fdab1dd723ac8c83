"""
Health check and status endpoints
"""
from fastapi import APIRouter
from datetime import datetime
from marketing_hub.config import get_settings
from marketing_hub.services.aggregators import supported_sources
from marketing_hub.services.normalizers import NORMALIZERS
from marketing_hub import __version__

settings = get_settings()

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
    """Get system status"""
    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "features": {
            "scheduler": settings.enable_scheduler,
            "sheets_sync": bool(settings.google_api_key and settings.google_spreadsheet_id),
        },
        "normalized_sources": sorted(NORMALIZERS.keys()),
        "aggregated_sources": supported_sources(),
        "timestamp": datetime.utcnow().isoformat()
    }
