from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .lib.command import CmdResult

logger = logging.getLogger(__name__)

ON_ERROR_POLICIES = ("continue", "stop")


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def _yaml():
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError(
            "YAML state requested but PyYAML is not available. "
            "Use JSON state or install PyYAML."
        ) from e
    return yaml


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    if _detect_format(p) in {"yaml", "yml"}:
        data = _yaml().safe_load(p.read_text(encoding="utf-8")) or {}
    else:
        data = json.loads(p.read_text(encoding="utf-8"))

    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) in {"yaml", "yml"}:
        p.write_text(_yaml().safe_dump(state, sort_keys=False) + "\n", encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with sane defaults (without overriding user values)."""

    state.setdefault("version", "1")
    state.setdefault("config", {})
    state.setdefault("execution", {})

    cfg = state["config"]
    cfg.setdefault("dry_run", False)
    # continue: later steps run after a failure, like the plain shell script.
    cfg.setdefault("on_error", "continue")
    if cfg["on_error"] not in ON_ERROR_POLICIES:
        raise ValueError(f"config.on_error must be one of {ON_ERROR_POLICIES}, got {cfg['on_error']!r}")

    exe = state["execution"]
    exe.setdefault("current_step", None)
    exe.setdefault("completed_steps", [])
    exe.setdefault("results", {})
    exe.setdefault("last_returncode", None)
    exe.setdefault("reports", {})
    exe.setdefault("errors", [])

    return state


def reset_run(state: Dict[str, Any]) -> None:
    """Drop per-run results while keeping completion history."""
    exe = state.setdefault("execution", {})
    exe["results"] = {}
    exe["last_returncode"] = None
    exe["errors"] = []


def record_result(state: Dict[str, Any], step_id: str, result: Optional[CmdResult]) -> None:
    if result is None:
        return
    exe = state.setdefault("execution", {})
    exe.setdefault("results", {}).setdefault(step_id, []).append(
        {"argv": result.argv, "returncode": result.returncode}
    )
    exe["last_returncode"] = result.returncode


def step_failed(state: Dict[str, Any], step_id: str) -> bool:
    results = ((state.get("execution") or {}).get("results") or {}).get(step_id) or []
    return any(r.get("returncode") != 0 for r in results)


def step_returncode(state: Dict[str, Any], step_id: str) -> int:
    """First non-zero returncode recorded for a step, else 0."""
    results = ((state.get("execution") or {}).get("results") or {}).get(step_id) or []
    for r in results:
        if r.get("returncode") != 0:
            return int(r["returncode"])
    return 0


def mark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    exe = state.setdefault("execution", {})
    completed = exe.setdefault("completed_steps", [])
    if step_id not in completed:
        completed.append(step_id)


def is_step_completed(state: Dict[str, Any], step_id: str) -> bool:
    exe = state.get("execution") or {}
    completed = exe.get("completed_steps") or []
    return step_id in completed


def unmark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    exe = state.setdefault("execution", {})
    completed = exe.setdefault("completed_steps", [])
    if step_id in completed:
        completed.remove(step_id)
