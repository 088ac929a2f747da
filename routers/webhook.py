import asyncio
import logging
from functools import partial
from typing import Callable

from fastapi import APIRouter, Depends, Request, Header, HTTPException, status

from config import Settings, get_settings
from dependencies import get_command_runner
from dispatcher import process_webhook
from exceptions import (
    AuthenticationError,
    CommandExecutionError,
    PayloadTooLargeError,
    PayloadValidationError,
    UnsupportedPlatformError,
)
from models.webhook_request import WebhookRequest

router = APIRouter()
logger = logging.getLogger(__name__)


def deployment_failed(error: Exception, settings: Settings) -> HTTPException:
    """
    Command output stays in the server logs unless expose_command_output is enabled.
    """
    logger.error(f"Deployment failed: {error}")
    detail = str(error) if settings.expose_command_output else "Deployment failed"
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.post("/webhook", summary="GitHub Webhook Endpoint")
async def handle_webhook(
        request: Request,
        x_hub_signature_256: str = Header(None),
        x_github_event: str = Header(None),
        user_agent: str = Header(None),
        content_type: str = Header("application/json"),
        settings: Settings = Depends(get_settings),
        runner: Callable = Depends(get_command_runner),
):
    logger.info("Webhook endpoint was called.")
    body_bytes = await request.body()

    webhook_request = WebhookRequest(
        body=body_bytes,
        signature=x_hub_signature_256,
        event=x_github_event,
        user_agent=user_agent,
        content_type=content_type,
    )

    # The deployment blocks on git and docker-compose, so keep it off the event loop.
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(
            None,
            partial(process_webhook, webhook_request, settings, runner)
        )
    except PayloadTooLargeError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Payload Too Large")
    except AuthenticationError as e:
        logger.warning(f"Unauthorized webhook call: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    except PayloadValidationError as e:
        logger.warning(f"Rejected webhook call: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")
    except (CommandExecutionError, UnsupportedPlatformError, OSError) as e:
        raise deployment_failed(e, settings)
    except Exception:
        logger.exception("Unexpected error while handling webhook.")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")
