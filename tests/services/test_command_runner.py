import sys

import pytest

from sqldeployer.errors import CommandFailedError, CommandTimeoutError, DeployerError
from sqldeployer.services.command_runner import CommandRunner, split_command_line


class DummyLogger:
    def __init__(self):
        self.messages = []

    def debug(self, message, *args, **_kwargs):
        self.messages.append(message % args)

    def warning(self, *_args, **_kwargs):
        return None


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(CommandFailedError, match="boom") as exc_info:
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"],
            capture_output=True,
        )

    assert exc_info.value.returncode == 3


def test_command_runner_returns_on_success():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run([sys.executable, "-c", "print('ok')"], capture_output=True)

    assert result.returncode == 0
    assert result.stdout.strip() == "ok"


def test_command_runner_redacts_secrets_from_logs_and_errors():
    logger = DummyLogger()
    runner = CommandRunner(logger=logger)

    with pytest.raises(CommandFailedError) as exc_info:
        runner.run(
            [
                sys.executable,
                "-c",
                "import sys; sys.stderr.write(sys.argv[1]); sys.exit(1)",
                "hunter2",
            ],
            capture_output=True,
            redact=["hunter2"],
        )

    assert "hunter2" not in str(exc_info.value)
    assert "********" in str(exc_info.value)
    assert all("hunter2" not in message for message in logger.messages)


def test_command_runner_timeout_raises_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(CommandTimeoutError, match="timed out"):
        runner.run(
            [sys.executable, "-c", "import time; time.sleep(2)"],
            capture_output=True,
            timeout=0.1,
        )



def test_command_runner_reports_missing_command():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(DeployerError, match="Required command not found"):
        runner.run(["definitely-not-a-real-sqlcmd-binary"])


def test_split_command_line_groups_quotes_and_keeps_backslashes():
    tokens = split_command_line(
        r'"C:\Program Files\sqlcmd.exe" -S host\SQLEXPRESS -d db -U "sa" -P "p w" -i "C:\scripts\a.sql"'
    )

    assert tokens == [
        r"C:\Program Files\sqlcmd.exe",
        "-S",
        r"host\SQLEXPRESS",
        "-d",
        "db",
        "-U",
        "sa",
        "-P",
        "p w",
        "-i",
        r"C:\scripts\a.sql",
    ]


def test_split_command_line_keeps_quoted_fragment_inside_token():
    tokens = split_command_line('/TargetConnectionString:"Server=a;Password=x y" #keep')

    assert tokens == ["/TargetConnectionString:Server=a;Password=x y", "#keep"]


def test_split_command_line_rejects_unbalanced_quotes():
    with pytest.raises(DeployerError, match="Invalid command line"):
        split_command_line('-P "open')
