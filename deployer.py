import logging
import os
import shlex
import threading
from typing import Callable

from config import Settings
from command_executor import run_command
from models.github_webhook import RepositoryRef

logger = logging.getLogger(__name__)

# One lock per repository working directory, created on first use.
_repo_locks = {}
_repo_locks_guard = threading.Lock()


def get_repository_lock(repo_path: str) -> threading.Lock:
    key = os.path.abspath(repo_path)
    with _repo_locks_guard:
        lock = _repo_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _repo_locks[key] = lock
        return lock


def get_repository_paths(repo: RepositoryRef, settings: Settings):
    """
    Returns (owner_path, repo_path) under the configured repositories root.
    """
    owner_path = os.path.join(settings.repos_root, repo.owner)
    repo_path = os.path.join(owner_path, repo.name)
    return owner_path, repo_path


def get_clone_url(repo: RepositoryRef, settings: Settings) -> str:
    return settings.clone_url_template.format(owner=repo.owner, name=repo.name)


def get_docker_compose_command(settings: Settings) -> list:
    command = shlex.split(settings.docker_compose_path) + shlex.split(settings.docker_compose_options)
    if settings.use_sudo:
        command = ["sudo"] + command
    return command


def deploy_repository(repo: RepositoryRef, settings: Settings, runner: Callable = run_command):
    """
    Brings the local checkout of a repository up to date and rebuilds its containers.

      1) Clones the repository if its directory does not exist yet,
         otherwise pulls with --ff-only so diverged history fails instead of merging.
      2) Rebuilds and restarts the docker-compose stack.
      3) Runs the configured post-deploy commands.

    The first failing command raises CommandExecutionError and nothing after it runs.
    Deployments of the same repository never overlap.
    """
    owner_path, repo_path = get_repository_paths(repo, settings)
    timeout = settings.command_timeout

    with get_repository_lock(repo_path):
        logger.info(f"=== Deploying {repo.full_name} into {repo_path} ===")

        if not os.path.isdir(repo_path):
            if not os.path.isdir(owner_path):
                logger.info(f"Creating owner directory: {owner_path}")
                os.makedirs(owner_path, exist_ok=True)
            clone_url = get_clone_url(repo, settings)
            logger.info(f"Cloning {clone_url}")
            runner(["git", "clone", "--", clone_url, repo.name], cwd=owner_path, timeout=timeout)
        else:
            logger.info(f"Repository directory exists, pulling latest changes: {repo_path}")
            runner(["git", "pull", "--ff-only"], cwd=repo_path, timeout=timeout)

        logger.info("Rebuilding and starting containers...")
        runner(get_docker_compose_command(settings), cwd=repo_path, timeout=timeout)

        for command in settings.post_deploy_commands:
            logger.info(f"Executing post-deploy command: {command}")
            runner(command, cwd=repo_path, timeout=timeout)

        logger.info(f"=== Finished deployment for {repo.full_name} ===")
