# config.py

import os
import logging
from functools import lru_cache
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_CLONE_URL_TEMPLATE = "https://github.com/{owner}/{name}.git"
# GitHub caps webhook payloads at 25 MB.
DEFAULT_MAX_BODY_BYTES = 25 * 1024 * 1024


class EmailSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    smtp_server: Optional[str] = None
    smtp_port: int = 587
    use_tls: bool = True
    username: Optional[str] = None
    password: Optional[str] = None
    sender_email: Optional[str] = None
    recipients: List[str] = Field(default_factory=list)


class NotificationSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    slack_webhook_url: str = ""
    email: Optional[EmailSettings] = None


class Settings(BaseModel):
    """
    Process-wide configuration, loaded once and passed around as an immutable handle.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    github_webhook_secret: str = ""
    repos_root: str = "../repos"
    clone_url_template: str = DEFAULT_CLONE_URL_TEMPLATE
    docker_compose_path: str = "docker-compose"
    docker_compose_options: str = "up -d --build"
    use_sudo: bool = False
    command_timeout: Optional[float] = None
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    expose_command_output: bool = False
    allowed_repositories: List[str] = Field(default_factory=list)
    post_deploy_commands: List[str] = Field(default_factory=list)
    deploy_api_key: str = ""
    diagnostics_api_key: str = ""
    debug_mode: bool = False
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


def load_config(config_path: Optional[str] = None) -> dict:
    """
    Load the raw configuration dictionary from YAML.

    The path comes from the CONFIG_PATH environment variable, or 'config.yaml'.
    A missing file yields an empty dictionary so the service can run on environment
    variables alone.
    """
    if config_path is None:
        config_path = os.getenv("CONFIG_PATH", "config.yaml")

    if not os.path.exists(config_path):
        logger.info(f"Configuration file '{config_path}' not found. Using defaults and environment.")
        return {}

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
            logger.info(f"Configuration loaded successfully from '{config_path}'.")
            return config
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML file '{config_path}': {e}")
        raise


def _apply_env_overrides(config: dict) -> dict:
    # Secrets and deployment-specific paths may come from the environment (e.g., a .env file).
    overrides = {
        "github_webhook_secret": os.getenv("GITHUB_WEBHOOK_SECRET"),
        "repos_root": os.getenv("REPOS_ROOT"),
        "deploy_api_key": os.getenv("DEPLOY_API_KEY"),
        "diagnostics_api_key": os.getenv("DIAGNOSTICS_API_KEY"),
        "debug_mode": os.getenv("DEBUG_MODE"),
    }
    for key, value in overrides.items():
        if value is not None:
            config[key] = value

    notifications = dict(config.get("notifications") or {})
    email = dict(notifications.get("email") or {})
    email_overrides = {
        "username": os.getenv("EMAIL_USERNAME"),
        "password": os.getenv("EMAIL_PASSWORD"),
        "smtp_server": os.getenv("SMTP_SERVER"),
        "smtp_port": os.getenv("SMTP_PORT"),
        "use_tls": os.getenv("EMAIL_USE_TLS"),
    }
    for key, value in email_overrides.items():
        if value is not None:
            email[key] = value
    if email:
        notifications["email"] = email
    config["notifications"] = notifications
    return config


def load_settings(config_path: Optional[str] = None) -> Settings:
    load_dotenv()
    config = _apply_env_overrides(load_config(config_path))
    settings = Settings(**config)

    if not settings.github_webhook_secret:
        logger.warning("GITHUB_WEBHOOK_SECRET is not set. Every webhook will be rejected as unauthorized.")
    email = settings.notifications.email
    if email is not None and not email.recipients:
        logger.warning("No email recipients configured. Email notifications will not be sent.")

    # Log summary of key settings (without sensitive details)
    logger.info(f"Repositories root: {os.path.abspath(settings.repos_root)}")
    logger.info(f"Docker compose command: {settings.docker_compose_path} {settings.docker_compose_options}")
    if settings.allowed_repositories:
        logger.info(f"Allowed repositories: {settings.allowed_repositories}")
    return settings


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
