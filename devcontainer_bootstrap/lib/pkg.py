from __future__ import annotations

import logging
from typing import Sequence

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)


def apt_update(*, dry_run: bool = False) -> CmdResult:
    return run_cmd(["apt-get", "update"], check=False, capture=False, dry_run=dry_run)


def apt_install(
    packages: Sequence[str],
    *,
    dry_run: bool = False,
) -> CmdResult | None:
    if not packages:
        return None
    return run_cmd(
        ["apt-get", "install", "-y", *packages],
        check=False,
        capture=False,
        dry_run=dry_run,
    )
