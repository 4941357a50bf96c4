from __future__ import annotations

import logging
import sys
from typing import Any, Dict

from ..lib.command import run_cmd
from ..lib.env import VERSION_COMMANDS, cargo_env_file
from ..lib.rustup import parse_version, source_env_file
from ..state_store import record_result

logger = logging.getLogger(__name__)


class ReportVersionsStep:
    """Activate the toolchain environment and print the tool versions.

    Output is printed as-is. Nothing here decides anything from it; the parsed
    version is only kept in the run record.
    """

    step_id = "40_report_versions"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        dry_run = bool(cfg.get("dry_run", False))

        env_file = cargo_env_file()
        sourced, env = source_env_file(env_file, dry_run=dry_run)
        record_result(state, self.step_id, sourced)
        if env is not None:
            logger.info("Activated environment from %s", env_file)

        reports = state.setdefault("execution", {}).setdefault("reports", {})
        for argv in VERSION_COMMANDS:
            # stderr goes straight to the terminal, as the tool wrote it.
            r = run_cmd(argv, check=False, env=env, capture_stderr=False, dry_run=dry_run)
            if r.stdout:
                sys.stdout.write(r.stdout)
                sys.stdout.flush()
            record_result(state, self.step_id, r)
            reports[argv[0]] = {"output": r.stdout.strip(), "version": parse_version(r.stdout)}

        return state
