import subprocess

import pytest

from gcloud_cli.errors import GCloudCliError, RunnerStartError
from gcloud_cli.execution import DockerRunner, ProcessRunner, RunnerRequest, assemble, resolve_runner
from gcloud_cli.models import DockerOptions, PullPolicy, RunnerType


def _request(working_dir, commands, *, env=None, docker=None, interpreter=("/bin/sh", "-c"), **kwargs):
    return RunnerRequest(
        runner_type=RunnerType.PROCESS,
        invocation=assemble(commands, docker or DockerOptions(), interpreter=interpreter),
        env=env or {},
        working_dir=working_dir,
        **kwargs,
    )


def test_process_runner_captures_streams_outputs_and_files(tmp_path):
    request = _request(
        tmp_path,
        [
            "echo hello",
            """echo '::{"outputs":{"topics":["t1","t2"]}}::'""",
            "echo 'deprecated flag' >&2",
            "echo data > out.txt",
        ],
        output_files=["*.txt"],
    )

    result = ProcessRunner().run(request)

    assert result.exit_code == 0
    assert result.stdout.startswith("hello\n")
    assert result.stderr == "deprecated flag\n"
    assert result.outputs == {"topics": ["t1", "t2"]}
    assert result.output_files == [(tmp_path / "out.txt").resolve()]
    assert result.warning is True


def test_process_runner_passes_environment(tmp_path):
    request = _request(tmp_path, ['echo "$CLOUDSDK_CORE_PROJECT"'], env={"CLOUDSDK_CORE_PROJECT": "proj-1"})

    result = ProcessRunner().run(request)

    assert result.stdout == "proj-1\n"
    assert result.warning is False


def test_process_runner_stages_input_files(tmp_path):
    request = _request(tmp_path, ["cat cluster.yaml"], input_files={"cluster.yaml": "nodes: 3"})

    assert ProcessRunner().run(request).stdout == "nodes: 3"


def test_non_zero_exit_is_reported_not_raised(tmp_path):
    result = ProcessRunner().run(_request(tmp_path, ["echo before", "exit 3"]))

    assert result.exit_code == 3
    assert result.succeeded is False
    assert result.stdout == "before\n"


def test_stderr_without_warning_flag(tmp_path):
    result = ProcessRunner().run(_request(tmp_path, ["echo noisy >&2"], warning_on_stderr=False))

    assert result.exit_code == 0
    assert result.warning is False


def test_process_runner_start_failure(tmp_path):
    request = _request(tmp_path, ["echo hi"], interpreter=("/nonexistent/sh", "-c"))

    with pytest.raises(RunnerStartError):
        ProcessRunner().run(request)


def test_docker_command_line(tmp_path):
    request = _request(
        tmp_path,
        ["gcloud storage ls"],
        env={"GOOGLE_APPLICATION_CREDENTIALS": "/wd/key.json", "CLOUDSDK_CORE_PROJECT": "proj-1"},
        docker=DockerOptions(
            pull_policy=PullPolicy.IF_NOT_PRESENT,
            user="1000:1000",
            network_mode="host",
            volumes=["/cache:/cache"],
            extra_hosts=["metadata:169.254.169.254"],
            memory="512m",
            cpus=1.5,
        ),
    )
    workdir = str(tmp_path.resolve())

    command = DockerRunner(docker_binary="podman").build_command(request)

    assert command[:10] == [
        "podman",
        "run",
        "--rm",
        "--pull",
        "missing",
        "--volume",
        f"{workdir}:{workdir}",
        "--workdir",
        workdir,
        "--env",
    ]
    assert command[-4:] == ["google/cloud-sdk", "/bin/sh", "-c", "gcloud storage ls"]
    assert ["--env", "GOOGLE_APPLICATION_CREDENTIALS"] == command[9:11]
    assert "--user" in command and "1000:1000" in command
    assert ["--network", "host"] == command[command.index("--network") : command.index("--network") + 2]
    assert "--add-host" in command
    assert ["--cpus", "1.5"] == command[command.index("--cpus") : command.index("--cpus") + 2]
    assert "proj-1" not in command
    assert "/wd/key.json" not in command


def test_docker_runner_passes_values_through_client_environment(tmp_path, monkeypatch):
    calls = {}

    def fake_run(command, **kwargs):
        calls["command"] = command
        calls["env"] = kwargs["env"]
        return subprocess.CompletedProcess(command, 0, stdout='::{"outputs":{"ok":true}}::\n', stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    request = _request(tmp_path, ["gcloud info"], env={"CLOUDSDK_CORE_PROJECT": "proj-1"})

    result = DockerRunner().run(request)

    assert calls["command"][0] == "docker"
    assert calls["env"]["CLOUDSDK_CORE_PROJECT"] == "proj-1"
    assert result.outputs == {"ok": True}


def test_docker_run_failure_is_a_start_error(tmp_path, monkeypatch):
    def fake_run(command, **kwargs):
        return subprocess.CompletedProcess(command, 125, stdout="", stderr="pull access denied for nope\n")

    monkeypatch.setattr(subprocess, "run", fake_run)
    request = _request(tmp_path, ["gcloud info"], docker=DockerOptions(image="nope"))

    with pytest.raises(RunnerStartError) as excinfo:
        DockerRunner().run(request)

    assert excinfo.value.detail == "pull access denied for nope"


def test_docker_command_failure_is_a_result(tmp_path, monkeypatch):
    def fake_run(command, **kwargs):
        return subprocess.CompletedProcess(command, 1, stdout="", stderr="ERROR: (gcloud) permission denied\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    result = DockerRunner().run(_request(tmp_path, ["gcloud storage ls"]))

    assert result.exit_code == 1
    assert result.warning is True


def test_missing_docker_binary(tmp_path):
    with pytest.raises(RunnerStartError):
        DockerRunner(docker_binary="/nonexistent/docker").run(_request(tmp_path, ["gcloud info"]))


def test_resolve_runner(settings):
    assert isinstance(resolve_runner(RunnerType.PROCESS, settings), ProcessRunner)
    assert isinstance(resolve_runner(RunnerType.DOCKER, settings), DockerRunner)


@pytest.mark.parametrize("key", ["A=B", "CLOUDSDK=CORE_PROJECT"])
def test_process_runner_rejects_illegal_env_names(tmp_path, key):
    request = _request(tmp_path, ["echo hi"], env={key: "x"})

    with pytest.raises(RunnerStartError):
        ProcessRunner().run(request)


def test_docker_runner_rejects_illegal_env_names(tmp_path):
    request = _request(tmp_path, ["gcloud info"], env={"A=B": "x"})

    with pytest.raises(RunnerStartError):
        DockerRunner().run(request)


def test_input_file_naming_the_working_directory(tmp_path):
    request = _request(tmp_path, ["echo hi"], input_files={"": "x"})

    with pytest.raises(GCloudCliError):
        ProcessRunner().run(request)


def test_command_exiting_125_in_container_is_a_start_error(tmp_path, monkeypatch):
    def fake_run(command, **kwargs):
        return subprocess.CompletedProcess(command, 125, stdout="partial\n", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(RunnerStartError) as excinfo:
        DockerRunner().run(_request(tmp_path, ["exit 125"]))

    assert excinfo.value.detail is None


def test_user_option_documents_key_ownership():
    description = DockerOptions.model_fields["user"].description

    assert "0600" in description
    assert "uid" in description
