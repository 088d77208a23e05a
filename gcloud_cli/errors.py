"""Error taxonomy for gcloud CLI task runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .models import ExecutionResult


class GCloudCliError(RuntimeError):
    """Base class for every error raised by a task run."""


class ConfigurationError(GCloudCliError):
    """Raised when the task definition is invalid; nothing has been executed."""


class RenderingError(GCloudCliError):
    """Raised when a templated field references an undefined variable or secret."""


class CredentialIOError(GCloudCliError):
    """Raised when the service account key file cannot be written."""


class RunnerStartError(GCloudCliError):
    """Raised when the runner cannot start the execution environment."""

    def __init__(self, message: str, *, detail: Optional[str] = None) -> None:
        super().__init__(message if not detail else f"{message}: {detail}")
        self.detail = detail


class CommandExitError(GCloudCliError):
    """Raised on request when the command sequence exited non-zero."""

    def __init__(self, result: "ExecutionResult") -> None:
        super().__init__(f"Command sequence exited with code {result.exit_code}")
        self.result = result

    @property
    def exit_code(self) -> int:
        return self.result.exit_code
