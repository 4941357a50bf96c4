from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, Optional

from .lib.env import PATHS
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import PipelineResult, StepFailed, run_pipeline
from .state_store import ensure_defaults, load_state, reset_run, save_state
from .steps import (
    InstallPackagesStep,
    InstallToolchainStep,
    RefreshIndexStep,
    ReportVersionsStep,
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_PATH = PATHS.state_default


def build_steps():
    return [
        RefreshIndexStep(),
        InstallPackagesStep(),
        InstallToolchainStep(),
        ReportVersionsStep(),
    ]


def run(
    *,
    state_path: str = DEFAULT_STATE_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    resume: bool = False,
    dry_run: Optional[bool] = None,
    fail_fast: Optional[bool] = None,
) -> PipelineResult:
    """Run the bootstrap pipeline, persisting the run record.

    dry_run/fail_fast override the state file's config for this run only; the
    config written back is the one the file held. The effective config is
    kept under execution.run_config.
    """

    actual_log_path = configure_logging(log_path=log_path)

    state = ensure_defaults(load_state(state_path))
    reset_run(state)
    file_cfg = dict(state["config"])
    if dry_run is not None:
        state["config"]["dry_run"] = dry_run
    if fail_fast is not None:
        state["config"]["on_error"] = "stop" if fail_fast else "continue"
    state["execution"]["run_config"] = dict(state["config"])

    paths = state["execution"].setdefault("paths", {})
    paths["log_path_requested"] = log_path
    paths["log_path_actual"] = actual_log_path

    try:
        result = run_pipeline(
            state=state,
            steps=build_steps(),
            start_at=start_at,
            stop_after=stop_after,
            resume=resume,
        )
        state = result.state
        state["execution"]["summary"] = {
            "ran_steps": result.ran_steps,
            "skipped_steps": result.skipped_steps,
            "failed_steps": result.failed_steps,
        }
        return result
    except Exception as e:
        logger.exception("Bootstrap failed")
        state.setdefault("execution", {}).setdefault("errors", []).append(
            {
                "step": (state.get("execution") or {}).get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        state["config"] = file_cfg
        save_state(state_path, state)


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="devcontainer-bootstrap",
        description="Install system packages and the nightly Rust toolchain into a dev container.",
    )
    p.add_argument("--state", default=DEFAULT_STATE_PATH, help="Path to the run record (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to the log file")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 30_install_toolchain)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--resume", action="store_true", help="Skip steps already marked completed")
    p.add_argument(
        "--dry-run",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Log commands without running them (overrides config.dry_run for this run)",
    )
    p.add_argument(
        "--fail-fast",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Stop at the first failing step (overrides config.on_error for this run)",
    )

    args = p.parse_args(argv)

    try:
        result = run(
            state_path=args.state,
            log_path=args.log,
            start_at=args.start_at,
            stop_after=args.stop_after,
            resume=args.resume,
            dry_run=args.dry_run,
            fail_fast=args.fail_fast,
        )
    except StepFailed as e:
        return e.returncode
    # Like the shell script: the status of the last command, whatever came before.
    return result.returncode


if __name__ == "__main__":
    raise SystemExit(main())
