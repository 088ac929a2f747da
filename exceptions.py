# exceptions.py

import json
from typing import Optional


class WebhookError(Exception):
    """Base class for errors raised while handling a webhook delivery."""


class AuthenticationError(WebhookError):
    """Missing or invalid authentication headers, or a bad signature."""


class PayloadValidationError(WebhookError):
    """The payload could not be parsed or carries unsafe identifiers."""


class UnsupportedEventError(PayloadValidationError):
    def __init__(self, event: str):
        super().__init__(f"Unsupported event '{event}'.")
        self.event = event


class PayloadTooLargeError(WebhookError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"Payload of {size} bytes exceeds the limit of {limit} bytes.")
        self.size = size
        self.limit = limit


class UnsupportedPlatformError(RuntimeError):
    """No shell invocation is known for the running platform."""


class CommandExecutionError(Exception):
    """
    An external command exited with a non-zero code, timed out, or could not be started.

    exit_code is None when the process never produced one.
    """

    def __init__(self, command: str, stdout: str = "", stderr: str = "", exit_code: Optional[int] = None):
        self.command = command
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        super().__init__(self.details())

    def details(self) -> str:
        return json.dumps({
            "command": self.command,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exitCode": self.exit_code,
        })
