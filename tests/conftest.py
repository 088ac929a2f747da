"""Shared fixtures for HookDeploy tests."""

import os

# Keep tests away from a real config file and the SQLite log database.
os.environ["CONFIG_PATH"] = os.path.join(os.path.dirname(__file__), "missing-config.yaml")
os.environ["LOG_DB_PATH"] = ""

import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from dependencies import get_command_runner
from exceptions import CommandExecutionError
from models.command_result import CommandResult
from utils import compute_signature

SECRET = "It's a Secret to Everybody"
GITHUB_USER_AGENT = "GitHub-Hookshot/044aadd"


class RecordingRunner:
    """Stands in for run_command: records every call and optionally fails one of them."""

    def __init__(self, fail_when=None):
        self.calls = []
        self.fail_when = fail_when

    def __call__(self, command, cwd=None, timeout=None):
        self.calls.append({"command": command, "cwd": cwd, "timeout": timeout})
        display = command if isinstance(command, str) else " ".join(command)
        if self.fail_when and self.fail_when(command):
            raise CommandExecutionError(display, "", "fatal: simulated failure", 1)
        return CommandResult(command=display, exit_code=0, stdout="ok\n", stderr="")

    @property
    def commands(self):
        return [call["command"] for call in self.calls]


def sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + compute_signature(body, secret)


@pytest.fixture
def repos_root(tmp_path):
    root = tmp_path / "repos"
    root.mkdir()
    return root


@pytest.fixture
def settings(repos_root):
    return Settings(github_webhook_secret=SECRET, repos_root=str(repos_root))


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def client(settings, runner):
    from main import app

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_command_runner] = lambda: runner
    yield TestClient(app)
    app.dependency_overrides.clear()
