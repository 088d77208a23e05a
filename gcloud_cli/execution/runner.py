"""Runners executing an assembled invocation in a container or a local process."""

from __future__ import annotations

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from gcloud_cli.config import GCloudCliSettings
from gcloud_cli.errors import RunnerStartError
from gcloud_cli.models import ExecutionResult, NamespaceFiles, PullPolicy, RunnerType

from .commands import AssembledInvocation
from .outputs import extract_outputs
from .staging import collect_output_files, stage_input_files, stage_namespace_files

LOGGER = logging.getLogger(__name__)

# `docker run` reports its own failures (daemon, image pull, bad flags) with 125.
DOCKER_RUN_FAILURE_EXIT_CODE = 125

_PULL_FLAGS = {
    PullPolicy.ALWAYS: "always",
    PullPolicy.IF_NOT_PRESENT: "missing",
    PullPolicy.NEVER: "never",
}


@dataclass(frozen=True)
class RunnerRequest:
    runner_type: RunnerType
    invocation: AssembledInvocation
    env: Dict[str, str]
    working_dir: Path
    namespace_files: Optional[NamespaceFiles] = None
    namespace_files_dir: Optional[Path] = None
    input_files: Optional[Dict[str, str]] = None
    output_files: Optional[List[str]] = None
    warning_on_stderr: bool = True


class CommandRunner(Protocol):
    def run(self, request: RunnerRequest) -> ExecutionResult: ...


class BaseRunner(ABC):
    """Stages files, executes, then captures outputs and output files."""

    def run(self, request: RunnerRequest) -> ExecutionResult:
        stage_namespace_files(request.working_dir, request.namespace_files, request.namespace_files_dir)
        stage_input_files(request.working_dir, request.input_files)

        exit_code, stdout, stderr = self._execute(request)

        warning = request.warning_on_stderr and bool(stderr.strip())
        if warning:
            LOGGER.warning("Commands wrote %d character(s) to stderr", len(stderr))
        if exit_code != 0:
            LOGGER.warning("Command sequence exited with code %s", exit_code)
        return ExecutionResult(
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            outputs=extract_outputs(stdout),
            output_files=collect_output_files(request.working_dir, request.output_files),
            warning=warning,
        )

    @abstractmethod
    def _execute(self, request: RunnerRequest) -> Tuple[int, str, str]:
        ...


class ProcessRunner(BaseRunner):
    """Runs the invocation as a local process inside the working directory."""

    def _execute(self, request: RunnerRequest) -> Tuple[int, str, str]:
        argv = request.invocation.argv
        env = {**os.environ, **request.env}
        LOGGER.debug("Starting local process %s in %s", argv[0], request.working_dir)
        try:
            proc = subprocess.run(
                argv,
                cwd=str(request.working_dir),
                env=env,
                capture_output=True,
                text=True,
                check=False,
            )
        except (OSError, ValueError) as exc:
            raise RunnerStartError(f"Failed to start {argv[0]}", detail=str(exc)) from exc
        return proc.returncode, proc.stdout, proc.stderr


class DockerRunner(BaseRunner):
    """Runs the invocation in a throwaway container through the docker CLI.

    The working directory is mounted at the same absolute path so that file
    paths bound in the environment stay valid inside the container. Variable
    values reach the container through the docker client's environment and
    never appear on its command line.

    ``docker run`` exits with 125 when it cannot start the container, and that
    is raised as :class:`RunnerStartError`. A command that itself exits 125
    inside the container is indistinguishable and is raised the same way
    instead of being returned as a result.
    """

    def __init__(self, docker_binary: str = "docker") -> None:
        self._docker_binary = docker_binary

    def build_command(self, request: RunnerRequest) -> List[str]:
        options = request.invocation.docker
        if not options.image:
            raise RunnerStartError("Docker runner requires an image")
        workdir = str(request.working_dir.resolve())
        command: List[str] = [
            self._docker_binary,
            "run",
            "--rm",
            "--pull",
            _PULL_FLAGS[options.pull_policy],
            "--volume",
            f"{workdir}:{workdir}",
            "--workdir",
            workdir,
        ]
        for key in request.env:
            command.extend(["--env", key])
        if options.user:
            command.extend(["--user", options.user])
        if options.entry_point is not None:
            command.extend(["--entrypoint", options.entry_point])
        if options.network_mode:
            command.extend(["--network", options.network_mode])
        for volume in options.volumes:
            command.extend(["--volume", volume])
        for host in options.extra_hosts:
            command.extend(["--add-host", host])
        if options.cpus is not None:
            command.extend(["--cpus", str(options.cpus)])
        if options.memory:
            command.extend(["--memory", options.memory])
        if options.shm_size:
            command.extend(["--shm-size", options.shm_size])
        if options.privileged:
            command.append("--privileged")
        command.append(options.image)
        command.extend(request.invocation.argv)
        return command

    def _execute(self, request: RunnerRequest) -> Tuple[int, str, str]:
        command = self.build_command(request)
        client_env = {**os.environ, **request.env}
        LOGGER.debug("Starting container from image %s", request.invocation.docker.image)
        try:
            proc = subprocess.run(
                command,
                env=client_env,
                capture_output=True,
                text=True,
                check=False,
            )
        except (OSError, ValueError) as exc:
            raise RunnerStartError(f"Failed to start {self._docker_binary}", detail=str(exc)) from exc
        if proc.returncode == DOCKER_RUN_FAILURE_EXIT_CODE:
            raise RunnerStartError(
                f"Container from image {request.invocation.docker.image} could not be started",
                detail=proc.stderr.strip() or None,
            )
        return proc.returncode, proc.stdout, proc.stderr


def resolve_runner(runner_type: RunnerType, settings: GCloudCliSettings) -> CommandRunner:
    if runner_type == RunnerType.PROCESS:
        return ProcessRunner()
    return DockerRunner(docker_binary=settings.docker_binary)
