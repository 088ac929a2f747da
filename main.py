# main.py

import logging
from fastapi import FastAPI

from config import get_settings
from logging_config import setup_logging

# Routers
from routers.health import router as health_router
from routers.diagnostics import router as diagnostics_router
from routers.webhook import router as webhook_router
from routers.deploy import router as deploy_router

# Configuration is read once per process; it decides the log level.
settings = get_settings()
setup_logging(settings.debug_mode)

logger = logging.getLogger(__name__)
logger.info("Starting the HookDeploy application...")


app = FastAPI(
    title="HookDeploy",
    description="Continuous deployment agent for GitHub push webhooks",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None
)

app.include_router(health_router)
app.include_router(diagnostics_router)
app.include_router(webhook_router)
app.include_router(deploy_router)
