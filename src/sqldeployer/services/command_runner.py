"""Subprocess execution service for SqlDeployer."""

import shlex
import subprocess
from typing import Iterable, List, Optional

from sqldeployer.constants import REDACTED
from sqldeployer.errors import CommandFailedError, CommandTimeoutError, DeployerError


def split_command_line(text: str) -> List[str]:
    """Splits a command line on whitespace; double quotes group and are dropped.

    Backslashes are kept as-is so Windows paths and named instances survive.
    """
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace_split = True
    lexer.quotes = '"'
    lexer.escape = ""
    lexer.commenters = ""
    try:
        return list(lexer)
    except ValueError as exc:
        raise DeployerError(f"Invalid command line: {exc}.") from exc


def redact_text(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger):
        self.logger = logger

    def run(
        self,
        cmd: List[str],
        capture_output: bool = False,
        timeout: Optional[float] = None,
        redact: Iterable[str] = (),
    ) -> subprocess.CompletedProcess:
        secrets = [value for value in redact if value]
        cmd_str = redact_text(subprocess.list2cmdline(cmd), secrets)
        self.logger.debug("Executing: %s", cmd_str)

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            raise DeployerError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandTimeoutError(
                f"Command timed out after {timeout}s: {cmd_str}"
            ) from exc
        except OSError as exc:
            raise DeployerError(
                f"Failed to execute command: {cmd_str}. {redact_text(str(exc), secrets)}"
            ) from exc

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{redact_text(stderr, secrets)}"

        raise CommandFailedError(message, result.returncode)
