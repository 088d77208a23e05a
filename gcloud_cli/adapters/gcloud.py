"""Workflow node handler running a gcloud CLI task."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from gcloud_cli.config import GCloudCliSettings
from gcloud_cli.execution import CommandRunner, RunContext
from gcloud_cli.models import ExecutionResult, TaskSpec
from gcloud_cli.task import run_task

LOGGER = logging.getLogger(__name__)


def _to_node_result(result: ExecutionResult) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"exitCode": result.exit_code, "warning": result.warning}
    if result.stderr:
        metadata["stderr"] = result.stderr
    return {
        "status": "succeeded" if result.succeeded else "failed",
        "outputs": dict(result.outputs),
        "metadata": metadata,
        "artifacts": [{"path": str(path), "name": path.name} for path in result.output_files],
    }


async def cli(
    context: RunContext,
    *,
    runner: Optional[CommandRunner] = None,
    settings: Optional[GCloudCliSettings] = None,
) -> Dict[str, Any]:
    """Run the task declared in ``context.params`` off the event loop."""

    spec = TaskSpec.from_dict(context.params or {})
    result = await asyncio.to_thread(run_task, spec, context, runner, settings=settings)
    if not result.succeeded:
        LOGGER.warning(
            "gcloud task failed run=%s task=%s exit_code=%s",
            context.run_id,
            context.task_id,
            result.exit_code,
        )
    return _to_node_result(result)
