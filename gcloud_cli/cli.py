"""Command line entrypoint running a gcloud task definition from a YAML file."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from gcloud_cli.config import get_settings
from gcloud_cli.errors import (
    CommandExitError,
    ConfigurationError,
    CredentialIOError,
    RenderingError,
    RunnerStartError,
)
from gcloud_cli.execution import RunContextFactory
from gcloud_cli.logging_config import configure_logging
from gcloud_cli.models import RunnerType, TaskSpec
from gcloud_cli.task import run_task

LOGGER = logging.getLogger(__name__)

# sysexits.h values, kept clear of the exit codes gcloud itself returns.
EXIT_CONFIG_ERROR = 65
EXIT_RUNTIME_ERROR = 69

EXIT_CODES_HELP = (
    "exit status: 0 on success, the command's exit code when it fails, "
    f"{EXIT_CONFIG_ERROR} on an invalid task definition or template, "
    f"{EXIT_RUNTIME_ERROR} when credentials or the runner cannot be set up"
)


def _load_yaml_mapping(path: Path, what: str) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigurationError(f"Failed to read {what} {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid {what} {path}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{what.capitalize()} {path} must contain a mapping at top level.")
    return raw


def _parse_vars(pairs: List[str]) -> Dict[str, str]:
    variables: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Invalid --var '{pair}', expected KEY=VALUE")
        variables[key] = value
    return variables


def load_task(path: Path) -> TaskSpec:
    definition = _load_yaml_mapping(path, "task definition")
    # Workflow definitions carry the task type; it selects this task, nothing more.
    definition.pop("type", None)
    return TaskSpec.from_dict(definition)


def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    spec = load_task(args.task_file)
    if args.runner:
        spec = spec.model_copy(update={"runner": RunnerType(args.runner.upper())})

    variables: Dict[str, Any] = {}
    if args.vars_file:
        variables.update(_load_yaml_mapping(args.vars_file, "variables file"))
    variables.update(_parse_vars(args.var))

    context = RunContextFactory(settings).build(task_id=spec.id or args.task_file.stem, variables=variables)
    try:
        result = run_task(spec, context, settings=settings)
    finally:
        if not args.keep_workdir:
            context.working_dir.cleanup()

    print(result.to_json())
    if args.strict:
        result.raise_for_exit()
    return result.exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gcloud-cli", description="Run gcloud commands as a workflow task")
    sub = parser.add_subparsers(dest="command", required=True)

    run_parser = sub.add_parser("run", help="Run a task definition", epilog=EXIT_CODES_HELP)
    run_parser.add_argument("task_file", type=Path, help="YAML task definition")
    run_parser.add_argument("--var", action="append", default=[], metavar="KEY=VALUE", help="Template variable")
    run_parser.add_argument("--vars-file", type=Path, help="YAML file with template variables")
    run_parser.add_argument("--runner", choices=["docker", "process"], help="Override the task runner")
    run_parser.add_argument("--keep-workdir", action="store_true", help="Keep the working directory after the run")
    run_parser.add_argument("--strict", action="store_true", help="Raise when the commands exit non-zero")
    run_parser.set_defaults(func=run)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)
    try:
        return args.func(args)
    except (ConfigurationError, RenderingError) as exc:
        LOGGER.error("%s", exc)
        return EXIT_CONFIG_ERROR
    except (CredentialIOError, RunnerStartError) as exc:
        LOGGER.error("%s", exc)
        return EXIT_RUNTIME_ERROR
    except CommandExitError as exc:
        LOGGER.error("%s", exc)
        return exc.exit_code


if __name__ == "__main__":
    sys.exit(main())
