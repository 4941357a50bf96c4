from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)

# Shell conventions for commands that could not be started.
COMMAND_NOT_FOUND = 127
COMMAND_NOT_EXECUTABLE = 126


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    def __init__(self, result: CmdResult) -> None:
        super().__init__(f"Command failed ({result.returncode}): {fmt_argv(result.argv)}\n{result.stderr}")
        self.result = result


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def _not_run(argv_list: list[str], returncode: int, reason: str, *, echo: bool) -> CmdResult:
    msg = f"{argv_list[0]}: {reason}\n"
    logger.error("%s: %s", reason.capitalize(), argv_list[0])
    if echo:
        sys.stderr.write(msg)
    return CmdResult(argv=argv_list, returncode=returncode, stdout="", stderr=msg)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    capture: bool = True,
    capture_stderr: bool | None = None,
    log_output: bool = True,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - capture=False lets the child write straight to our stdout/stderr;
      capture_stderr overrides that for stderr alone.
    - Like a shell, a missing executable yields 127 and a non-executable one
      126 instead of raising. Undecodable output is replaced, not fatal.
    - dry_run logs but does not execute.
    """

    argv_list = list(argv)
    logger.info("CMD %s", fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    if capture_stderr is None:
        capture_stderr = capture

    try:
        p = subprocess.run(
            argv_list,
            input=input_text,
            text=True,
            errors="replace",
            stdout=subprocess.PIPE if capture else None,
            stderr=subprocess.PIPE if capture_stderr else None,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
        )
    except FileNotFoundError:
        result = _not_run(argv_list, COMMAND_NOT_FOUND, "command not found", echo=not capture_stderr)
    except PermissionError:
        result = _not_run(argv_list, COMMAND_NOT_EXECUTABLE, "permission denied", echo=not capture_stderr)
    else:
        stdout = p.stdout or ""
        stderr = p.stderr or ""
        if log_output and stdout:
            logger.debug("STDOUT %s", stdout.strip())
        if log_output and stderr:
            logger.debug("STDERR %s", stderr.strip())
        result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=stdout, stderr=stderr)

    if check and result.returncode != 0:
        raise CommandError(result)

    return result
