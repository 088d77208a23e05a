"""Assembly of the runner-ready command invocation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from gcloud_cli.config import DEFAULT_IMAGE, DEFAULT_INTERPRETER
from gcloud_cli.models import DockerOptions


@dataclass(frozen=True)
class AssembledInvocation:
    interpreter: tuple[str, ...]
    script: str
    docker: DockerOptions

    @property
    def argv(self) -> List[str]:
        return [*self.interpreter, self.script]


def with_defaults(options: DockerOptions, default_image: str = DEFAULT_IMAGE) -> DockerOptions:
    """Return ``options`` with the image filled in when unset."""

    if options.image is not None:
        return options
    return options.model_copy(update={"image": default_image})


def script_body(commands: Sequence[str]) -> str:
    return "\n".join(commands)


def assemble(
    commands: Sequence[str],
    docker: DockerOptions,
    *,
    interpreter: Sequence[str] = DEFAULT_INTERPRETER,
    default_image: str = DEFAULT_IMAGE,
) -> AssembledInvocation:
    """Wrap command lines into one script run by ``interpreter``.

    Lines keep their order and exact text.
    """

    return AssembledInvocation(
        interpreter=tuple(interpreter),
        script=script_body(commands),
        docker=with_defaults(docker, default_image),
    )
