import os
import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status

from config import Settings, get_settings
from dependencies import get_diagnostics_api_key, get_command_runner
from deployer import get_docker_compose_command
from exceptions import CommandExecutionError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/test-command", summary="Test Command Execution")
def test_command(
        api_key: str = Depends(get_diagnostics_api_key),
        settings: Settings = Depends(get_settings),
        runner: Callable = Depends(get_command_runner),
):
    """
    Checks that git and docker-compose are installed and reachable from the service.
    """
    logger.info("Test command endpoint was called.")
    compose_command = get_docker_compose_command(settings.model_copy(update={
        "docker_compose_options": "--version",
        "use_sudo": False,
    }))
    try:
        git_result = runner(["git", "--version"], cwd=os.getcwd(), timeout=settings.command_timeout)
        compose_result = runner(compose_command, cwd=os.getcwd(), timeout=settings.command_timeout)
    except CommandExecutionError as e:
        logger.error(f"Test command failed: {e}")
        detail = str(e) if settings.expose_command_output else "Test command failed"
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

    return {
        "git_version": git_result.stdout.strip() or "No output",
        "docker_compose_version": compose_result.stdout.strip() or "No output",
    }
