"""End-to-end tests of the HTTP endpoints with a recording command runner."""

import json

from conftest import GITHUB_USER_AGENT, RecordingRunner, sign
from dependencies import get_command_runner

BODY = json.dumps({"repository": {"name": "demo", "owner": {"login": "alice"}}}).encode()


def github_headers(body=BODY, event="push", **extra):
    headers = {
        "Content-Type": "application/json",
        "User-Agent": GITHUB_USER_AGENT,
        "X-GitHub-Event": event,
        "X-Hub-Signature-256": sign(body),
    }
    headers.update(extra)
    return headers


def test_push_clones_missing_repository(client, runner, repos_root):
    response = client.post("/webhook", content=BODY, headers=github_headers())

    assert response.status_code == 200
    assert response.json() == {"message": "push event to demo"}
    assert runner.commands == [
        ["git", "clone", "--", "https://github.com/alice/demo.git", "demo"],
        ["docker-compose", "up", "-d", "--build"],
    ]
    assert runner.calls[0]["cwd"] == str(repos_root / "alice")
    assert runner.calls[1]["cwd"] == str(repos_root / "alice" / "demo")


def test_push_pulls_existing_repository(client, runner, repos_root):
    (repos_root / "alice" / "demo").mkdir(parents=True)

    response = client.post("/webhook", content=BODY, headers=github_headers())

    assert response.status_code == 200
    assert runner.commands == [
        ["git", "pull", "--ff-only"],
        ["docker-compose", "up", "-d", "--build"],
    ]


def test_missing_signature_is_unauthorized(client, runner, repos_root):
    headers = github_headers()
    del headers["X-Hub-Signature-256"]

    response = client.post("/webhook", content=BODY, headers=headers)

    assert response.status_code == 401
    assert runner.calls == []
    assert list(repos_root.iterdir()) == []


def test_invalid_signature_is_unauthorized(client, runner):
    headers = github_headers(**{"X-Hub-Signature-256": sign(BODY, "not the secret")})
    response = client.post("/webhook", content=BODY, headers=headers)
    assert response.status_code == 401
    assert runner.calls == []


def test_non_github_user_agent_is_unauthorized(client, runner):
    response = client.post("/webhook", content=BODY, headers=github_headers(**{"User-Agent": "curl/8.4.0"}))
    assert response.status_code == 401
    assert runner.calls == []


def test_injection_in_owner_is_rejected(client, runner, repos_root):
    body = json.dumps({"repository": {"name": "demo", "owner": {"login": "alice; rm -rf /"}}}).encode()

    response = client.post("/webhook", content=body, headers=github_headers(body))

    assert response.status_code == 400
    assert response.json() == {"detail": "Bad Request"}
    assert runner.calls == []
    assert list(repos_root.iterdir()) == []


def test_unsupported_event_is_bad_request(client, runner):
    response = client.post("/webhook", content=BODY, headers=github_headers(event="ping"))
    assert response.status_code == 400
    assert runner.calls == []


def test_oversized_payload(client, settings, runner):
    from config import get_settings
    from main import app

    app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"max_body_bytes": 16})
    response = client.post("/webhook", content=BODY, headers=github_headers())
    assert response.status_code == 413
    assert runner.calls == []


def test_command_failure_is_opaque_by_default(client):
    from main import app

    failing = RecordingRunner(fail_when=lambda command: command[:2] == ["git", "clone"])
    app.dependency_overrides[get_command_runner] = lambda: failing

    response = client.post("/webhook", content=BODY, headers=github_headers())

    assert response.status_code == 500
    assert response.json() == {"detail": "Deployment failed"}
    assert len(failing.calls) == 1


def test_command_failure_details_can_be_exposed(client, settings):
    from config import get_settings
    from main import app

    app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"expose_command_output": True})
    app.dependency_overrides[get_command_runner] = lambda: RecordingRunner(
        fail_when=lambda command: command[0] == "docker-compose"
    )

    response = client.post("/webhook", content=BODY, headers=github_headers())

    assert response.status_code == 500
    detail = json.loads(response.json()["detail"])
    assert detail["exitCode"] == 1
    assert detail["stderr"] == "fatal: simulated failure"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "OK", "repos_root_exists": True}


def test_unusable_repos_root_is_opaque_failure(client, settings, tmp_path, runner):
    from config import get_settings
    from main import app

    not_a_directory = tmp_path / "repos-file"
    not_a_directory.write_text("")
    app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"repos_root": str(not_a_directory)})

    response = client.post("/webhook", content=BODY, headers=github_headers())

    assert response.status_code == 500
    assert response.json() == {"detail": "Deployment failed"}
    assert runner.calls == []
