# routers/health.py

import os

from fastapi import APIRouter, Depends
import logging

from config import Settings, get_settings

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", summary="Health Check Endpoint")
def health_check(settings: Settings = Depends(get_settings)):
    logger.debug("Health check endpoint was called.")
    return {
        "status": "OK",
        "repos_root_exists": os.path.isdir(settings.repos_root),
    }
