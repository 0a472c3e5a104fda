"""Subprocess execution service for drdump."""

import subprocess
from typing import Iterable, List, Optional

from drdump.constants import REDACTED
from drdump.errors import ProcessLaunchError
from drdump.errors_catalog import actionable_error
from drdump.models import CommandResult


def redact_text(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


class CommandRunner:
    """Runs external commands and reports their exit status and output.

    Commands block until they exit. No timeout applies unless one is given
    here or per call; a timed-out command yields a result without exit code.
    """

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    def execute(
        self,
        name: str,
        cmd: List[str],
        redact: Iterable[str] = (),
        timeout: Optional[float] = None,
    ) -> CommandResult:
        secrets = [value for value in redact if value]
        cmd_str = redact_text(" ".join(cmd), secrets)
        self.logger.debug("Executing %s: %s", name, cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            completed = subprocess.run(
                cmd,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=effective_timeout,
            )
        except FileNotFoundError as exc:
            raise ProcessLaunchError(actionable_error("tool_not_found", tool=cmd[0])) from exc
        except subprocess.TimeoutExpired as exc:
            partial = exc.output or ""
            if isinstance(partial, bytes):
                partial = partial.decode("utf-8", errors="replace")
            self.logger.warning("%s timed out after %ss: %s", name, effective_timeout, cmd_str)
            return CommandResult(exit_code=None, output=redact_text(partial, secrets))
        except OSError as exc:
            raise ProcessLaunchError(f"Failed to start {name}: {cmd[0]}. {exc}") from exc

        output = redact_text(completed.stdout or "", secrets)
        if output:
            self.logger.debug("%s output: %s", name, output.strip())

        return CommandResult(exit_code=completed.returncode, output=output)
