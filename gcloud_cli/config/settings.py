"""Task runtime configuration loading and validation."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterable, List, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gcloud_cli.models import RunnerType

DEFAULT_IMAGE = "google/cloud-sdk"
DEFAULT_INTERPRETER: tuple[str, ...] = ("/bin/sh", "-c")

DEFAULT_CONFIG_LOCATIONS: tuple[Path, ...] = (
    Path("/etc/gcloud-cli/config.yaml"),
    Path("/etc/gcloud-cli/config.yml"),
    Path("./config/gcloud-cli.yaml"),
    Path("./config/gcloud-cli.yml"),
)


class GCloudCliSettings(BaseSettings):
    """Validated settings for running gcloud CLI tasks."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="GCLOUD_CLI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Command assembly
    default_image: str = Field(
        default=DEFAULT_IMAGE,
        description="Image used when a task does not set docker.image.",
    )
    interpreter: List[str] = Field(
        default_factory=lambda: list(DEFAULT_INTERPRETER),
        min_length=1,
        description="Interpreter and run-string flag the command script is passed to.",
    )

    # Runners
    default_runner: RunnerType = Field(
        default=RunnerType.DOCKER,
        description="Runner used when a task does not choose one.",
    )
    docker_binary: str = Field(
        default="docker",
        description="Docker client executable used by the Docker runner.",
    )

    # Runtime layout
    data_dir: Path = Field(
        default=Path("./var/data"),
        description="Directory holding per-run working directories.",
    )
    namespace_files_dir: Path | None = Field(
        default=None,
        description="Directory namespace files are staged from.",
    )

    secret_env_prefix: str = Field(
        default="SECRET_",
        description="Prefix of environment variables secret('NAME') resolves to.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level for the task process.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("default_runner", mode="before")
    @classmethod
    def _normalize_runner(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    config_path: Path | None = Field(
        default=None,
        description="Resolved path to the on-disk config that seeded the settings.",
        exclude=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[GCloudCliSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            cls._yaml_settings_source,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @staticmethod
    def _yaml_settings_source(settings_cls: type[GCloudCliSettings] | None = None) -> Dict[str, Any]:
        for path in GCloudCliSettings._resolve_candidate_paths():
            data = GCloudCliSettings._load_file(path)
            if data is not None:
                data.setdefault("config_path", path)
                return data
        return {}

    @staticmethod
    def _resolve_candidate_paths() -> Iterable[Path]:
        explicit = os.getenv("GCLOUD_CLI_CONFIG_FILE")
        if explicit:
            yield Path(explicit).expanduser()
        yield from DEFAULT_CONFIG_LOCATIONS

    @staticmethod
    def _load_file(path: Path) -> Dict[str, Any] | None:
        if not path.is_file():
            return None
        suffix = path.suffix.lower()
        try:
            with path.open("r", encoding="utf-8") as handle:
                if suffix in {".yaml", ".yml"}:
                    raw = yaml.safe_load(handle)
                elif suffix == ".json":
                    raw = json.load(handle)
                else:
                    return None
        except OSError as exc:
            raise RuntimeError(f"Failed to read gcloud-cli config file {path}") from exc
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ValueError(f"Invalid gcloud-cli config file {path}") from exc

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ValueError(f"gcloud-cli config file {path} must contain a mapping at top level.")
        return raw


@lru_cache()
def get_settings() -> GCloudCliSettings:
    """Return memoized settings."""

    settings = GCloudCliSettings()
    settings.data_dir = settings.data_dir.expanduser().resolve()
    if settings.namespace_files_dir is not None:
        settings.namespace_files_dir = settings.namespace_files_dir.expanduser().resolve()
    return settings
