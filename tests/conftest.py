from __future__ import annotations

import json
from typing import List, Optional

import pytest

from gcloud_cli.config import GCloudCliSettings, get_settings
from gcloud_cli.execution import EnvSecretStore, RunContext, RunContextFactory, RunnerRequest
from gcloud_cli.models import ExecutionResult

SERVICE_ACCOUNT_JSON = json.dumps(
    {
        "type": "service_account",
        "project_id": "proj-1",
        "private_key_id": "abc123",
        "client_email": "runner@proj-1.iam.gserviceaccount.com",
    }
)


class RecordingRunner:
    """Runner double that records requests and returns a canned result."""

    def __init__(self, result: Optional[ExecutionResult] = None) -> None:
        self.requests: List[RunnerRequest] = []
        self.result = result or ExecutionResult(exit_code=0)

    def run(self, request: RunnerRequest) -> ExecutionResult:
        self.requests.append(request)
        return self.result


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GCLOUD_CLI_CONFIG_FILE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> GCloudCliSettings:
    return GCloudCliSettings(data_dir=tmp_path / "data")


@pytest.fixture
def secrets() -> EnvSecretStore:
    return EnvSecretStore(environ={"SECRET_GCP_SA": SERVICE_ACCOUNT_JSON})


@pytest.fixture
def context(settings, secrets) -> RunContext:
    return RunContextFactory(settings).build(
        task_id="gcloud",
        run_id="run-1",
        variables={"bucket": "my-bucket", "inputs": {"project": "proj-1", "region": "europe-west3"}},
        secrets=secrets,
    )


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def runner_factory():
    return RecordingRunner


@pytest.fixture
def service_account_json() -> str:
    return SERVICE_ACCOUNT_JSON
