import sys

import pytest

from drdump.errors import ProcessLaunchError
from drdump.services.command_runner import CommandRunner


class DummyLogger:
    def __init__(self):
        self.messages = []

    def debug(self, message, *args, **_kwargs):
        self.messages.append(message % args)

    def warning(self, message, *args, **_kwargs):
        self.messages.append(message % args)


def test_command_runner_captures_output_on_success():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.execute("python", [sys.executable, "-c", "print('mysqldump  Ver 8.0.36')"])

    assert result.successful
    assert result.exit_code == 0
    assert "Ver 8.0.36" in result.output


def test_command_runner_reports_non_zero_exit_as_failure_regardless_of_output():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.execute(
        "python",
        [sys.executable, "-c", "import sys; print('everything is fine'); sys.exit(3)"],
    )

    assert not result.successful
    assert result.exit_code == 3
    assert "everything is fine" in result.output


def test_command_runner_merges_stderr_into_output():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.execute(
        "python",
        [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(1)"],
    )

    assert "boom" in result.output


def test_command_runner_raises_launch_error_for_missing_executable():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ProcessLaunchError, match="definitely-not-a-tool"):
        runner.execute("missing", ["definitely-not-a-tool-42", "--version"])


def test_command_runner_redacts_secrets_from_logs_and_output():
    logger = DummyLogger()
    runner = CommandRunner(logger=logger)

    result = runner.execute(
        "python",
        [sys.executable, "-c", "import sys; print(sys.argv[1])", "--password=hunter2"],
        redact=["hunter2"],
    )

    assert "hunter2" not in result.output
    assert "--password=****" in result.output
    assert all("hunter2" not in message for message in logger.messages)


def test_command_runner_timeout_yields_result_without_exit_code():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.execute(
        "python",
        [sys.executable, "-c", "import time; time.sleep(2)"],
        timeout=0.1,
    )

    assert result.exit_code is None
    assert not result.successful
