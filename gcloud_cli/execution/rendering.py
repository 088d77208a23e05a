"""Rendering of ``{{ expression }}`` placeholders in task fields."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol

from gcloud_cli.errors import RenderingError

_PLACEHOLDER = re.compile(r"\{\{\s*(.*?)\s*\}\}")
_SECRET_CALL = re.compile(r"""^secret\(\s*(['"])(?P<name>[^'"]+)\1\s*\)$""")
_VARIABLE_PATH = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*(\.[A-Za-z0-9_-]+)*$")


class Renderer(Protocol):
    def render(self, template: str) -> str: ...


class SecretStore(Protocol):
    def get(self, name: str) -> Optional[str]: ...


@dataclass
class EnvSecretStore:
    """Resolves ``secret('NAME')`` from ``<prefix>NAME`` environment variables."""

    prefix: str = "SECRET_"
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)

    def get(self, name: str) -> Optional[str]:
        return self.environ.get(f"{self.prefix}{name}")


@dataclass
class VariableRenderer:
    variables: Mapping[str, Any] = field(default_factory=dict)
    secrets: Optional[SecretStore] = None

    def render(self, template: str) -> str:
        return _PLACEHOLDER.sub(self._replace, template)

    def _replace(self, match: re.Match[str]) -> str:
        expression = match.group(1)
        secret = _SECRET_CALL.match(expression)
        if secret:
            return self._lookup_secret(secret.group("name"))
        if not _VARIABLE_PATH.match(expression):
            raise RenderingError(f"Unsupported expression '{{{{ {expression} }}}}'")
        return _stringify(self._lookup_variable(expression))

    def _lookup_secret(self, name: str) -> str:
        value = self.secrets.get(name) if self.secrets is not None else None
        if value is None:
            raise RenderingError(f"Secret '{name}' is not defined")
        return value

    def _lookup_variable(self, path: str) -> Any:
        current: Any = self.variables
        for part in path.split("."):
            if isinstance(current, Mapping) and part in current:
                current = current[part]
            elif isinstance(current, (list, tuple)) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                raise RenderingError(f"Variable '{path}' is not defined")
        return current


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, (Mapping, list, tuple, bool)):
        return json.dumps(value)
    return str(value)
