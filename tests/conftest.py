"""Shared fixtures: a scripted stand-in for subprocess.run."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

from devcontainer_bootstrap.lib import command

VERSION_OUTPUT = {
    "rustup --version": "rustup 1.27.1 (54dd3d00f 2024-04-24)\n",
    "cargo --version": "cargo 1.80.0-nightly (05364cb2f 2024-05-03)\n",
    "rustc --version": "rustc 1.80.0-nightly (ada5e2c7b 2024-05-31)\n",
}


@dataclass
class Call:
    argv: List[str]
    input: Optional[str]
    env: Optional[Dict[str, str]]
    captured: bool
    stderr_captured: bool


class FakeRunner:
    def __init__(self, home: str) -> None:
        self.calls: List[Call] = []
        self.returncodes: Dict[str, int] = {}
        self.missing: set[str] = set()
        self.stdout: Dict[str, str] = {
            "curl": "#!/bin/sh\necho rustup-init\n",
            "sh -c": f"PATH={home}/.cargo/bin:/usr/bin\0HOME={home}\0",
            **VERSION_OUTPUT,
        }

    @staticmethod
    def _keys(argv: List[str]) -> List[str]:
        return [" ".join(argv[:2]), argv[0]]

    def _lookup(self, table: Dict[str, Any], argv: List[str], default: Any) -> Any:
        for key in self._keys(argv):
            if key in table:
                return table[key]
        return default

    def argvs(self) -> List[List[str]]:
        return [c.argv for c in self.calls]

    def __call__(self, argv, *, input=None, text=None, errors=None, stdout=None, stderr=None, cwd=None, env=None):
        captured = stdout is subprocess.PIPE
        call = Call(
            argv=list(argv),
            input=input,
            env=env,
            captured=captured,
            stderr_captured=stderr is subprocess.PIPE,
        )
        self.calls.append(call)
        if argv[0] in self.missing:
            raise FileNotFoundError(2, "No such file or directory", argv[0])
        rc = self._lookup(self.returncodes, argv, 0)
        out = self._lookup(self.stdout, argv, "") if captured else None
        err = "" if call.stderr_captured else None
        return subprocess.CompletedProcess(argv, rc, out, err)


@pytest.fixture
def fake_run(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    runner = FakeRunner(home=str(tmp_path))
    monkeypatch.setattr(command.subprocess, "run", runner)
    return runner


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    if hasattr(root, "_devcontainer_bootstrap_log_path"):
        delattr(root, "_devcontainer_bootstrap_log_path")
