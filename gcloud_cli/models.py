"""Task definition and result models for the gcloud CLI task."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import CommandExitError, ConfigurationError


class RunnerType(str, enum.Enum):
    DOCKER = "DOCKER"
    PROCESS = "PROCESS"


class PullPolicy(str, enum.Enum):
    ALWAYS = "ALWAYS"
    IF_NOT_PRESENT = "IF_NOT_PRESENT"
    NEVER = "NEVER"


class DockerOptions(BaseModel):
    """Options for the Docker runner.

    Unknown keys are kept so that options understood only by an external
    runner survive default injection untouched.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    image: Optional[str] = Field(default=None, description="Container image the commands run in.")
    pull_policy: PullPolicy = Field(default=PullPolicy.ALWAYS, alias="pullPolicy")
    user: Optional[str] = Field(
        default=None,
        description=(
            "User the container runs as. The service account key is written with mode 0600 and owned by "
            "the host user, so a different uid cannot read it."
        ),
    )
    entry_point: Optional[str] = Field(default=None, alias="entryPoint")
    network_mode: Optional[str] = Field(default=None, alias="networkMode")
    volumes: List[str] = Field(default_factory=list)
    extra_hosts: List[str] = Field(default_factory=list, alias="extraHosts")
    cpus: Optional[float] = None
    memory: Optional[str] = None
    shm_size: Optional[str] = Field(default=None, alias="shmSize")
    privileged: bool = False


class NamespaceFiles(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    enabled: bool = True
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None


class TaskSpec(BaseModel):
    """Declared configuration of one gcloud CLI task.

    String fields other than ``docker`` and the file staging declarations are
    templates; they are rendered against the run context before use.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    id: Optional[str] = None
    service_account: Optional[str] = Field(
        default=None,
        alias="serviceAccount",
        description="Full service account JSON key used to authenticate gcloud.",
        repr=False,
    )
    project_id: Optional[str] = Field(
        default=None,
        alias="projectId",
        description="GCP project id the commands are scoped to.",
    )
    commands: List[str] = Field(default_factory=list, description="Command lines to run, in order.")
    env: Optional[Dict[str, str]] = Field(
        default=None,
        description="Additional environment variables for the commands.",
    )
    docker: DockerOptions = Field(default_factory=DockerOptions)
    runner: Optional[RunnerType] = None
    namespace_files: Optional[NamespaceFiles] = Field(default=None, alias="namespaceFiles")
    input_files: Optional[Union[Dict[str, str], str]] = Field(default=None, alias="inputFiles")
    output_files: Optional[List[str]] = Field(default=None, alias="outputFiles")

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "TaskSpec":
        if not isinstance(obj, dict):
            raise ConfigurationError("Task definition must be a mapping")
        try:
            return cls.model_validate(obj)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid task definition: {exc}") from exc


@dataclass(frozen=True)
class ExecutionResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    outputs: Dict[str, Any] = field(default_factory=dict)
    output_files: List[Path] = field(default_factory=list)
    warning: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def raise_for_exit(self) -> "ExecutionResult":
        """Raise :class:`CommandExitError` when the commands exited non-zero."""

        if not self.succeeded:
            raise CommandExitError(self)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exitCode": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "outputs": self.outputs,
            "outputFiles": [str(path) for path in self.output_files],
            "warning": self.warning,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
