from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.env import SYSTEM_PACKAGES
from ..lib.pkg import apt_install
from ..state_store import record_result

logger = logging.getLogger(__name__)


class InstallPackagesStep:
    step_id = "20_install_packages"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        dry_run = bool(cfg.get("dry_run", False))

        packages = list(SYSTEM_PACKAGES)
        logger.info("Installing system packages: %s", ", ".join(packages))
        record_result(state, self.step_id, apt_install(packages, dry_run=dry_run))
        return state
