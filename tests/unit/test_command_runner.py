"""Tests for the external command runner."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from onboardai.core.exceptions import ExternalToolError
from onboardai.utils.command_runner import CommandRunner, ToolCommand


@pytest.fixture
def command():
    return ToolCommand(program="ffmpeg", args=("-version",), purpose="check ffmpeg")


def test_argv_is_program_plus_args(command):
    assert command.argv == ["ffmpeg", "-version"]


@patch("onboardai.utils.command_runner.subprocess.run")
def test_run_success(mock_run, settings, logger, command):
    mock_run.return_value = MagicMock(returncode=0, stdout="ffmpeg version 6", stderr="")
    result = CommandRunner(settings, logger).run(command)

    assert result.returncode == 0
    assert result.stdout == "ffmpeg version 6"
    args, kwargs = mock_run.call_args
    assert args[0] == ["ffmpeg", "-version"]
    assert "shell" not in kwargs
    assert kwargs["timeout"] == settings.ffmpeg_timeout_seconds


@patch("onboardai.utils.command_runner.subprocess.run")
def test_nonzero_exit_raises(mock_run, settings, logger, command):
    mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="line\nInvalid data found")
    with pytest.raises(ExternalToolError) as exc_info:
        CommandRunner(settings, logger).run(command)
    assert exc_info.value.returncode == 1
    assert "Invalid data found" in exc_info.value.message
    assert exc_info.value.reason == "external_tool_failed"


@patch("onboardai.utils.command_runner.subprocess.run")
def test_missing_program_raises(mock_run, settings, logger, command):
    mock_run.side_effect = FileNotFoundError("ffmpeg")
    with pytest.raises(ExternalToolError, match="not found"):
        CommandRunner(settings, logger).run(command)


@patch("onboardai.utils.command_runner.subprocess.run")
def test_timeout_raises(mock_run, settings, logger, command):
    mock_run.side_effect = subprocess.TimeoutExpired(cmd="ffmpeg", timeout=1)
    with pytest.raises(ExternalToolError, match="timed out"):
        CommandRunner(settings, logger, timeout=1).run(command)
