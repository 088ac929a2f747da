# dependencies.py

import hmac
import logging
from typing import Callable

from fastapi import Header, HTTPException, status, Depends

from command_executor import run_command
from config import Settings, get_settings

logger = logging.getLogger(__name__)


def get_command_runner() -> Callable:
    return run_command


def _check_api_key(api_key: str, expected: str, purpose: str):
    if not expected or not hmac.compare_digest(api_key.encode("utf-8"), expected.encode("utf-8")):
        logger.warning(f"Invalid API Key for {purpose}.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API Key")


def get_deploy_api_key(
        api_key: str = Header(..., alias="X-API-Key"),
        settings: Settings = Depends(get_settings)
):
    _check_api_key(api_key, settings.deploy_api_key, "manual deployment")
    return api_key


def get_diagnostics_api_key(
        api_key: str = Header(..., alias="X-API-Key"),
        settings: Settings = Depends(get_settings)
):
    _check_api_key(api_key, settings.diagnostics_api_key, "diagnostics")
    return api_key
