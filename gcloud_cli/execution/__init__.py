"""Execution pipeline helpers for gcloud CLI task runs."""

from .commands import AssembledInvocation, assemble, with_defaults
from .context import RunContext, RunContextFactory, WorkingDirectory
from .credentials import (
    CLOUDSDK_AUTH_CREDENTIAL_FILE_OVERRIDE,
    GOOGLE_APPLICATION_CREDENTIALS,
    materialize_credentials,
)
from .dispatcher import dispatch
from .environment import CLOUDSDK_CORE_PROJECT, compose_environment
from .outputs import extract_outputs
from .rendering import EnvSecretStore, Renderer, VariableRenderer
from .runner import CommandRunner, DockerRunner, ProcessRunner, RunnerRequest, resolve_runner

__all__ = [
    "AssembledInvocation",
    "CLOUDSDK_AUTH_CREDENTIAL_FILE_OVERRIDE",
    "CLOUDSDK_CORE_PROJECT",
    "CommandRunner",
    "DockerRunner",
    "EnvSecretStore",
    "GOOGLE_APPLICATION_CREDENTIALS",
    "ProcessRunner",
    "Renderer",
    "RunContext",
    "RunContextFactory",
    "RunnerRequest",
    "VariableRenderer",
    "WorkingDirectory",
    "assemble",
    "compose_environment",
    "dispatch",
    "extract_outputs",
    "materialize_credentials",
    "resolve_runner",
    "with_defaults",
]
