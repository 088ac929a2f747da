import logging
from typing import Callable, Optional
from urllib.parse import parse_qs

from pydantic import ValidationError

from command_executor import run_command
from config import Settings
from deployer import deploy_repository
from exceptions import (
    AuthenticationError,
    CommandExecutionError,
    PayloadTooLargeError,
    PayloadValidationError,
    UnsupportedEventError,
)
from models.github_webhook import GitHubPushPayload, RepositoryRef
from models.webhook_request import WebhookRequest
from notifications import Notifications
from utils import verify_signature

logger = logging.getLogger(__name__)

GITHUB_USER_AGENT_PREFIX = "GitHub-Hookshot/"


def check_headers(request: WebhookRequest, settings: Settings):
    if not settings.github_webhook_secret:
        raise AuthenticationError("Webhook secret is not configured.")
    if not request.signature:
        raise AuthenticationError("Missing X-Hub-Signature-256 header.")
    if not request.event:
        raise AuthenticationError("Missing X-GitHub-Event header.")
    if not request.user_agent or not request.user_agent.startswith(GITHUB_USER_AGENT_PREFIX):
        raise AuthenticationError(f"User-Agent '{request.user_agent}' is not a GitHub delivery agent.")


def parse_payload(request: WebhookRequest) -> GitHubPushPayload:
    """
    Deserializes the delivery body; GitHub sends either raw JSON or a form field named 'payload'.
    """
    try:
        if "application/x-www-form-urlencoded" in request.content_type.lower():
            form_data = parse_qs(request.body.decode("utf-8"))
            if "payload" not in form_data:
                raise PayloadValidationError("No payload parameter in form data.")
            return GitHubPushPayload.model_validate_json(form_data["payload"][0])
        return GitHubPushPayload.model_validate_json(request.body)
    except (ValidationError, UnicodeDecodeError) as e:
        raise PayloadValidationError(f"Invalid payload: {e}") from e


def get_repository_ref(payload: GitHubPushPayload, settings: Settings) -> RepositoryRef:
    try:
        repo = RepositoryRef(owner=payload.repository.owner.login, name=payload.repository.name)
    except ValidationError as e:
        raise PayloadValidationError(f"Unsafe repository identifier: {e}") from e

    if settings.allowed_repositories and repo.full_name not in settings.allowed_repositories:
        raise PayloadValidationError(f"Repository '{repo.full_name}' not configured for deployment.")
    return repo


def run_deployment(repo: RepositoryRef, settings: Settings, runner: Callable = run_command,
                   notifier: Optional[Notifications] = None):
    """
    Deploys the repository and reports the outcome through the configured notification channels.
    """
    if notifier is None:
        notifier = Notifications(settings.notifications)
    try:
        deploy_repository(repo, settings, runner)
    except Exception as e:
        details = e.details() if isinstance(e, CommandExecutionError) else f"{type(e).__name__}: {e}"
        logger.error(f"Deployment of {repo.full_name} failed: {details}")
        notifier.notify_deploy_event(repo.full_name, "failed", details)
        raise
    notifier.notify_deploy_event(repo.full_name, "successful", "Deployment completed successfully.")


def handle_event(repo: RepositoryRef, event_type: str, settings: Settings, runner: Callable = run_command,
                 notifier: Optional[Notifications] = None) -> dict:
    if event_type == "push":
        run_deployment(repo, settings, runner, notifier)
        return {"message": f"push event to {repo.name}"}
    raise UnsupportedEventError(event_type)


def process_webhook(request: WebhookRequest, settings: Settings, runner: Callable = run_command,
                    notifier: Optional[Notifications] = None) -> dict:
    """
    Authenticates, validates and dispatches one webhook delivery.

    Raises PayloadTooLargeError, AuthenticationError, PayloadValidationError
    (including UnsupportedEventError), CommandExecutionError, or OSError when the
    repositories root cannot be used.
    """
    if len(request.body) > settings.max_body_bytes:
        raise PayloadTooLargeError(len(request.body), settings.max_body_bytes)

    check_headers(request, settings)
    if not verify_signature(request.body, settings.github_webhook_secret, request.signature):
        raise AuthenticationError("Invalid signature.")

    payload = parse_payload(request)
    repo = get_repository_ref(payload, settings)

    logger.info(f"Received '{request.event}' event for repository: {repo.full_name}")
    return handle_event(repo, request.event, settings, runner, notifier)
