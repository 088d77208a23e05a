"""Run gcloud CLI commands as a workflow task with injected credentials."""

from .errors import (
    CommandExitError,
    ConfigurationError,
    CredentialIOError,
    GCloudCliError,
    RenderingError,
    RunnerStartError,
)
from .models import DockerOptions, ExecutionResult, NamespaceFiles, PullPolicy, RunnerType, TaskSpec
from .task import render_spec, run_task, validate_spec

__all__ = [
    "CommandExitError",
    "ConfigurationError",
    "CredentialIOError",
    "DockerOptions",
    "ExecutionResult",
    "GCloudCliError",
    "NamespaceFiles",
    "PullPolicy",
    "RenderingError",
    "RunnerStartError",
    "RunnerType",
    "TaskSpec",
    "render_spec",
    "run_task",
    "validate_spec",
]
