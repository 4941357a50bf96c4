from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .state_store import (
    is_step_completed,
    mark_step_completed,
    step_failed,
    step_returncode,
    unmark_step_completed,
)

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single provisioning step."""

    step_id: str

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


class StepFailed(RuntimeError):
    def __init__(self, step_id: str, returncode: int) -> None:
        super().__init__(f"Step {step_id} failed with exit status {returncode}")
        self.step_id = step_id
        self.returncode = returncode


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    skipped_steps: List[str]
    failed_steps: List[str]

    @property
    def returncode(self) -> int:
        """Exit status of the last command executed, 0 if none ran."""
        last = (self.state.get("execution") or {}).get("last_returncode")
        return int(last) if last is not None else 0


def run_pipeline(
    *,
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    resume: bool = False,
) -> PipelineResult:
    """Run steps in order.

    A failed step never blocks the following ones unless config.on_error is
    "stop". A failed step loses any earlier completion mark; dry runs mark
    nothing.
    """

    known = {s.step_id for s in steps}
    for name, value in (("start_at", start_at), ("stop_after", stop_after)):
        if value is not None and value not in known:
            raise ValueError(f"Unknown step for {name}: {value} (known: {', '.join(sorted(known))})")

    cfg = state.get("config") or {}
    on_error = cfg.get("on_error", "continue")
    dry_run = bool(cfg.get("dry_run", False))

    ran: List[str] = []
    skipped: List[str] = []
    failed: List[str] = []

    started = start_at is None

    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                continue

        state.setdefault("execution", {})["current_step"] = step.step_id

        if resume and is_step_completed(state, step.step_id):
            logger.info("Skipping step %s (already completed)", step.step_id)
            skipped.append(step.step_id)
        else:
            logger.info("Running step %s", step.step_id)
            state = step.run(state)
            ran.append(step.step_id)
            if step_failed(state, step.step_id):
                failed.append(step.step_id)
                unmark_step_completed(state, step.step_id)
                rc = step_returncode(state, step.step_id)
                if on_error == "stop":
                    raise StepFailed(step.step_id, rc)
                logger.warning("Step %s failed (exit status %s); continuing", step.step_id, rc)
            elif not dry_run:
                mark_step_completed(state, step.step_id)

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    state.setdefault("execution", {})["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, skipped_steps=skipped, failed_steps=failed)
