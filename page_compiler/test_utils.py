import asyncio
import json
import subprocess
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel

# Use relative imports as the directory is a package
from .core_types import FileOperationError
from .utils import CommandResult, ConfigurationManager, FileManager, ProcessManager, load_json


class SampleConfig(BaseModel):
    name: str
    jobs: int = 1


# --- Fixtures ---


@pytest.fixture
def config_manager():
    return ConfigurationManager()


@pytest.fixture
def mock_subprocess_run(mocker):
    """Fixture to mock subprocess.run."""
    mock_run = mocker.patch("subprocess.run")
    mock_run.return_value = MagicMock(returncode=0, stdout=b"mock stdout", stderr=b"")
    return mock_run


# --- Tests for ConfigurationManager ---


def test_load_json(config_manager, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"name": "javac"}), encoding="utf-8")
    assert config_manager.load_json(path) == {"name": "javac"}
    assert load_json(path) == {"name": "javac"}


def test_load_json_missing_file(config_manager, tmp_path):
    with pytest.raises(FileOperationError) as excinfo:
        config_manager.load_json(tmp_path / "missing.json")
    assert excinfo.value.error_code == "FILE_NOT_FOUND"


def test_load_json_invalid(config_manager, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(FileOperationError) as excinfo:
        config_manager.load_json(path)
    assert excinfo.value.error_code == "INVALID_JSON"


def test_load_json_unreadable(config_manager, tmp_path):
    """A path that exists but cannot be read as a file."""
    with pytest.raises(FileOperationError) as excinfo:
        config_manager.load_json(tmp_path)
    assert excinfo.value.error_code == "FILE_READ_ERROR"

    with pytest.raises(FileOperationError) as excinfo:
        asyncio.run(config_manager.load_json_async(tmp_path))
    assert excinfo.value.error_code == "FILE_READ_ERROR"


def test_load_json_async(config_manager, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"name": "ecj", "jobs": 2}), encoding="utf-8")
    assert asyncio.run(config_manager.load_json_async(path)) == {"name": "ecj", "jobs": 2}


def test_load_json_async_invalid(config_manager, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("[1,", encoding="utf-8")
    with pytest.raises(FileOperationError) as excinfo:
        asyncio.run(config_manager.load_json_async(path))
    assert excinfo.value.error_code == "INVALID_JSON"


def test_load_config_with_model(config_manager, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"name": "javac", "jobs": 3}), encoding="utf-8")
    config = config_manager.load_config_with_model(path, SampleConfig)
    assert config == SampleConfig(name="javac", jobs=3)


def test_load_config_with_model_validation_error(config_manager, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"jobs": "many"}), encoding="utf-8")
    with pytest.raises(FileOperationError) as excinfo:
        config_manager.load_config_with_model(path, SampleConfig)
    assert excinfo.value.error_code == "INVALID_CONFIGURATION"
    assert excinfo.value.context["validation_errors"]


def test_load_config_with_model_async(config_manager, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"name": "javac"}), encoding="utf-8")
    config = asyncio.run(config_manager.load_config_with_model_async(path, SampleConfig))
    assert config.jobs == 1


# --- Tests for FileManager ---


def test_temporary_directory_lifecycle():
    temp_dir = FileManager.create_temporary_directory(prefix="page_compiler_test_")
    assert temp_dir.is_dir()
    assert temp_dir.name.startswith("page_compiler_test_")
    FileManager.remove_directory(temp_dir)
    assert not temp_dir.exists()


def test_ensure_directory(tmp_path):
    target = tmp_path / "a" / "b"
    assert FileManager.ensure_directory(target) == target
    assert target.is_dir()
    FileManager.ensure_directory(target)


# --- Tests for ProcessManager ---


def test_run_command_success(mock_subprocess_run):
    result = ProcessManager.run_command(["javac", "-version"], timeout=10)

    assert result.success
    assert result.stdout == "mock stdout"
    assert result.command == ["javac", "-version"]
    assert mock_subprocess_run.call_args.kwargs["timeout"] == 10


def test_run_command_merges_environment(mock_subprocess_run, monkeypatch):
    monkeypatch.setenv("PATH", "/usr/bin")
    ProcessManager.run_command(["javac"], env={"LC_ALL": "C"})
    env = mock_subprocess_run.call_args.kwargs["env"]
    assert env["LC_ALL"] == "C"
    assert env["PATH"] == "/usr/bin"


def test_run_command_failure(mock_subprocess_run):
    mock_subprocess_run.return_value = MagicMock(returncode=1, stdout=b"", stderr=b"A.java:1: error: x\n")
    result = ProcessManager.run_command(["javac", "A.java"])
    assert not result.success
    assert result.return_code == 1
    assert result.stderr == "A.java:1: error: x"


def test_run_command_timeout(mock_subprocess_run):
    mock_subprocess_run.side_effect = subprocess.TimeoutExpired(cmd="javac", timeout=5)
    result = ProcessManager.run_command(["javac"], timeout=5)
    assert not result.success
    assert result.return_code == -1
    assert "timed out after 5s" in result.stderr


def test_run_command_not_found(mock_subprocess_run):
    mock_subprocess_run.side_effect = FileNotFoundError
    result = ProcessManager.run_command(["no-such-javac"])
    assert result.return_code == -1
    assert result.stderr == "Command not found: no-such-javac"


def test_command_result_output_and_validation():
    result = CommandResult(success=True, stdout="out", stderr="err", command=["a", "b"])
    assert result.output == "out\nerr"
    assert result.command_str == "a b"
    with pytest.raises(ValueError):
        CommandResult(success=True, execution_time=-1.0)
