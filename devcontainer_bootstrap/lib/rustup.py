from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

from .command import CmdResult, run_cmd
from .env import TOOLCHAIN, Toolchain

logger = logging.getLogger(__name__)

# "rustc 1.80.0-nightly (abcdef123 2024-05-01)" -> "1.80.0-nightly"
_VERSION_RE = re.compile(r"^\S+\s+(\d+\.\d+\.\d+(?:-[0-9A-Za-z.]+)?)")


def fetch_installer(toolchain: Toolchain = TOOLCHAIN, *, dry_run: bool = False) -> CmdResult:
    # stdout is the installer script itself.
    return run_cmd(
        ["curl", toolchain.installer_url, "-sSf"],
        check=False,
        log_output=False,
        dry_run=dry_run,
    )


def install_toolchain(toolchain: Toolchain = TOOLCHAIN, *, dry_run: bool = False) -> Tuple[CmdResult, CmdResult]:
    """curl <url> | sh -s -- <flags>

    The result of the pair is the result of `sh`, as in a shell pipeline
    without pipefail. A failed download feeds empty input to `sh`.
    """

    fetched = fetch_installer(toolchain, dry_run=dry_run)
    if fetched.stderr:
        sys.stderr.write(fetched.stderr)
    if not fetched.ok:
        logger.warning("Installer download failed (%s): %s", fetched.returncode, fetched.stderr.strip())
    ran = run_cmd(
        ["sh", "-s", "--", *toolchain.installer_args()],
        check=False,
        input_text=fetched.stdout,
        capture=False,
        dry_run=dry_run,
    )
    return fetched, ran


def parse_env0(blob: str) -> Dict[str, str]:
    env: Dict[str, str] = {}
    for entry in blob.split("\0"):
        if not entry or "=" not in entry:
            continue
        key, _, value = entry.partition("=")
        env[key] = value
    return env


def source_env_file(path: Path, *, dry_run: bool = False) -> Tuple[CmdResult, Optional[Dict[str, str]]]:
    """Source a POSIX env file in a child shell and return the resulting environment.

    Returns (result, None) when sourcing failed.
    """

    r = run_cmd(
        ["sh", "-c", '. "$1" && env -0', "sh", str(path)],
        check=False,
        log_output=False,
        dry_run=dry_run,
    )
    if not r.ok:
        if r.stderr:
            sys.stderr.write(r.stderr)
        logger.warning("Could not source %s (%s): %s", path, r.returncode, r.stderr.strip())
        return r, None
    if dry_run:
        return r, None
    return r, parse_env0(r.stdout)


def parse_version(output: str) -> Optional[str]:
    for line in output.splitlines():
        m = _VERSION_RE.match(line.strip())
        if m:
            return m.group(1)
    return None
