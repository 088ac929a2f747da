# deploy.py is a FastAPI router that handles manual deployment requests.

import asyncio
import logging
from functools import partial
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from config import Settings, get_settings
from dependencies import get_deploy_api_key, get_command_runner
from dispatcher import run_deployment
from exceptions import CommandExecutionError, UnsupportedPlatformError
from models.deploy_request import DeployRequest
from models.github_webhook import RepositoryRef
from routers.webhook import deployment_failed

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/deploy", summary="Manual Deployment Endpoint")
async def manual_deploy(
        deploy_request: DeployRequest,
        api_key: str = Depends(get_deploy_api_key),
        settings: Settings = Depends(get_settings),
        runner: Callable = Depends(get_command_runner),
):
    try:
        repo = RepositoryRef(owner=deploy_request.owner, name=deploy_request.name)
    except ValidationError as e:
        logger.warning(f"Rejected manual deployment request: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")

    if settings.allowed_repositories and repo.full_name not in settings.allowed_repositories:
        logger.warning(f"Repository '{repo.full_name}' not configured for deployment.")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")

    logger.info(f"Manual deployment triggered for repository: {repo.full_name}")

    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, partial(run_deployment, repo, settings, runner))
    except (CommandExecutionError, UnsupportedPlatformError, OSError) as e:
        raise deployment_failed(e, settings)

    logger.info("Manual deployment successful")
    return {"message": f"Manual deployment of {repo.name} successful"}
