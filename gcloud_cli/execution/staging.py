"""File staging into and out of a run's working directory."""

from __future__ import annotations

import fnmatch
import logging
import shutil
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from gcloud_cli.errors import ConfigurationError, RunnerStartError
from gcloud_cli.models import NamespaceFiles

LOGGER = logging.getLogger(__name__)


def _inside(root: Path, relative: str) -> Path:
    if Path(relative).is_absolute():
        raise ConfigurationError(f"Staged path '{relative}' must be relative to the working directory")
    resolved_root = root.resolve()
    target = (resolved_root / relative).resolve()
    if target == resolved_root:
        raise ConfigurationError(f"Staged path '{relative}' does not name a file")
    try:
        target.relative_to(resolved_root)
    except ValueError as exc:
        raise ConfigurationError(f"Staged path '{relative}' escapes the working directory") from exc
    return target


def stage_input_files(working_dir: Path, input_files: Optional[Mapping[str, str]]) -> List[Path]:
    staged: List[Path] = []
    for relative, content in (input_files or {}).items():
        target = _inside(working_dir, relative)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise RunnerStartError(f"Failed to stage input file '{relative}'", detail=str(exc)) from exc
        staged.append(target)
    if staged:
        LOGGER.debug("Staged %d input file(s) into %s", len(staged), working_dir)
    return staged


def _matches(relative: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch.fnmatch(relative, pattern) for pattern in patterns)


def stage_namespace_files(
    working_dir: Path,
    namespace_files: Optional[NamespaceFiles],
    source_dir: Optional[Path],
) -> List[Path]:
    """Copy namespace files selected by include/exclude globs."""

    if namespace_files is None or not namespace_files.enabled:
        return []
    if source_dir is None:
        raise ConfigurationError("namespaceFiles is enabled but no namespace files directory is configured")
    include = namespace_files.include or ["*"]
    exclude = namespace_files.exclude or []
    staged: List[Path] = []
    for source in sorted(source_dir.rglob("*")):
        if not source.is_file():
            continue
        relative = source.relative_to(source_dir).as_posix()
        if not _matches(relative, include) or _matches(relative, exclude):
            continue
        target = _inside(working_dir, relative)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
        except OSError as exc:
            raise RunnerStartError(f"Failed to stage namespace file '{relative}'", detail=str(exc)) from exc
        staged.append(target)
    LOGGER.debug("Staged %d namespace file(s) from %s", len(staged), source_dir)
    return staged


def collect_output_files(working_dir: Path, patterns: Optional[Iterable[str]]) -> List[Path]:
    """Return regular files matching ``patterns``; hidden paths are never collected."""

    root = working_dir.resolve()
    found: set[Path] = set()
    for pattern in patterns or []:
        if Path(pattern).is_absolute():
            raise ConfigurationError(f"Output file pattern '{pattern}' must be relative")
        for candidate in root.glob(pattern):
            resolved = candidate.resolve()
            if not resolved.is_file():
                continue
            try:
                relative = resolved.relative_to(root)
            except ValueError:
                continue
            if any(part.startswith(".") for part in relative.parts):
                continue
            found.add(resolved)
    return sorted(found)
