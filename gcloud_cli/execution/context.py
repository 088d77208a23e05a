"""Run context definitions: rendering plus the per-run working directory."""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from gcloud_cli.config import GCloudCliSettings

from .rendering import EnvSecretStore, Renderer, SecretStore, VariableRenderer

LOGGER = logging.getLogger(__name__)


@dataclass
class WorkingDirectory:
    """Filesystem scope of a single run; staged files and credentials live here."""

    path: Path

    def create_temp_file(
        self, content: bytes, *, prefix: Optional[str] = None, suffix: Optional[str] = None
    ) -> Path:
        """Write ``content`` to a new file readable only by the current user."""

        self.path.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(dir=self.path, prefix=prefix, suffix=suffix)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
        except OSError:
            Path(name).unlink(missing_ok=True)
            raise
        return Path(name)

    def cleanup(self) -> None:
        shutil.rmtree(self.path, ignore_errors=True)


@dataclass
class RunContext:
    run_id: str
    task_id: str
    working_dir: WorkingDirectory
    renderer: Renderer
    params: Dict[str, Any] = field(default_factory=dict)
    namespace_files_dir: Optional[Path] = None

    def render(self, template: Optional[str]) -> Optional[str]:
        if template is None:
            return None
        return self.renderer.render(template)

    def render_list(self, templates: List[str]) -> List[str]:
        return [self.renderer.render(template) for template in templates]

    def render_map(self, templates: Optional[Mapping[str, str]]) -> Optional[Dict[str, str]]:
        if templates is None:
            return None
        return {key: self.renderer.render(value) for key, value in templates.items()}


@dataclass
class RunContextFactory:
    settings: GCloudCliSettings

    def build(
        self,
        *,
        task_id: str,
        run_id: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
        secrets: Optional[SecretStore] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> RunContext:
        run_id = run_id or uuid.uuid4().hex
        safe_task_id = self._sanitize_path_segment(task_id)
        data_dir = Path(self.settings.data_dir) / self._sanitize_path_segment(run_id) / safe_task_id
        data_dir.mkdir(parents=True, exist_ok=True)
        LOGGER.debug("Prepared working directory %s for run=%s task=%s", data_dir, run_id, task_id)
        if secrets is None:
            secrets = EnvSecretStore(prefix=self.settings.secret_env_prefix)
        return RunContext(
            run_id=run_id,
            task_id=task_id,
            working_dir=WorkingDirectory(data_dir),
            renderer=VariableRenderer(variables=dict(variables or {}), secrets=secrets),
            params=dict(params or {}),
            namespace_files_dir=self.settings.namespace_files_dir,
        )

    @staticmethod
    def _sanitize_path_segment(segment: str) -> str:
        cleaned = re.sub(r'[<>:"/\\\\|?*]', "_", segment)
        cleaned = cleaned.strip(". ")
        return cleaned or "task"
