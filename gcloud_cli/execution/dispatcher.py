"""Hand-off of an assembled invocation to a runner."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from gcloud_cli.models import ExecutionResult, NamespaceFiles, RunnerType

from .commands import AssembledInvocation
from .context import RunContext
from .runner import CommandRunner, RunnerRequest

LOGGER = logging.getLogger(__name__)


def dispatch(
    runner: CommandRunner,
    *,
    context: RunContext,
    runner_type: RunnerType,
    invocation: AssembledInvocation,
    env: Dict[str, str],
    namespace_files: Optional[NamespaceFiles] = None,
    input_files: Optional[Dict[str, str]] = None,
    output_files: Optional[List[str]] = None,
) -> ExecutionResult:
    """Build the runner request and return the runner's result unchanged.

    Stderr output is always flagged as a warning rather than a failure.
    """

    request = RunnerRequest(
        runner_type=runner_type,
        invocation=invocation,
        env=env,
        working_dir=context.working_dir.path,
        namespace_files=namespace_files,
        namespace_files_dir=context.namespace_files_dir,
        input_files=input_files,
        output_files=output_files,
        warning_on_stderr=True,
    )
    LOGGER.info(
        "Dispatching commands run=%s task=%s runner=%s image=%s env=%s",
        context.run_id,
        context.task_id,
        runner_type.value,
        invocation.docker.image,
        sorted(env),
    )
    return runner.run(request)
