"""Run operation of the gcloud CLI task."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from gcloud_cli.config import GCloudCliSettings, get_settings
from gcloud_cli.errors import ConfigurationError
from gcloud_cli.execution.commands import assemble
from gcloud_cli.execution.context import RunContext
from gcloud_cli.execution.credentials import materialize_credentials
from gcloud_cli.execution.dispatcher import dispatch
from gcloud_cli.execution.environment import compose_environment
from gcloud_cli.execution.runner import CommandRunner, resolve_runner
from gcloud_cli.models import ExecutionResult, TaskSpec

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedTask:
    commands: List[str]
    service_account: Optional[str] = field(default=None, repr=False)
    project_id: Optional[str] = None
    env: Optional[Dict[str, str]] = field(default=None, repr=False)
    input_files: Optional[Dict[str, str]] = field(default=None, repr=False)


def validate_spec(spec: TaskSpec) -> None:
    if not spec.commands:
        raise ConfigurationError("commands must contain at least one command line")


def render_spec(spec: TaskSpec, context: RunContext) -> RenderedTask:
    """Render every templated field; nothing touches the filesystem here."""

    return RenderedTask(
        commands=context.render_list(spec.commands),
        service_account=context.render(spec.service_account),
        project_id=context.render(spec.project_id),
        env=context.render_map(spec.env),
        input_files=_render_input_files(spec, context),
    )


def _render_input_files(spec: TaskSpec, context: RunContext) -> Optional[Dict[str, str]]:
    raw = spec.input_files
    if raw is None:
        return None
    if isinstance(raw, dict):
        return context.render_map(raw)
    rendered = context.render(raw)
    try:
        parsed = json.loads(rendered)
    except json.JSONDecodeError as exc:
        raise ConfigurationError("inputFiles must render to a JSON object") from exc
    if not isinstance(parsed, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in parsed.items()
    ):
        raise ConfigurationError("inputFiles must map file names to string contents")
    return parsed


def run_task(
    spec: TaskSpec,
    context: RunContext,
    runner: Optional[CommandRunner] = None,
    *,
    settings: Optional[GCloudCliSettings] = None,
) -> ExecutionResult:
    """Run the task's commands and return the runner's result.

    A non-zero exit code is reported in the result rather than raised; use
    :meth:`ExecutionResult.raise_for_exit` for strict handling.
    """

    validate_spec(spec)
    settings = settings or get_settings()
    rendered = render_spec(spec, context)

    credential_env = materialize_credentials(rendered.service_account, context.working_dir)
    env = compose_environment(credential_env, rendered.project_id, rendered.env)
    invocation = assemble(
        rendered.commands,
        spec.docker,
        interpreter=settings.interpreter,
        default_image=settings.default_image,
    )
    runner_type = spec.runner or settings.default_runner
    if runner is None:
        runner = resolve_runner(runner_type, settings)

    result = dispatch(
        runner,
        context=context,
        runner_type=runner_type,
        invocation=invocation,
        env=env,
        namespace_files=spec.namespace_files,
        input_files=rendered.input_files,
        output_files=spec.output_files,
    )
    LOGGER.info(
        "Task run=%s task=%s finished exit_code=%s outputs=%s output_files=%d",
        context.run_id,
        context.task_id,
        result.exit_code,
        sorted(result.outputs),
        len(result.output_files),
    )
    return result
