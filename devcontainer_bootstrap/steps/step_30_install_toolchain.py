from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.env import TOOLCHAIN
from ..lib.rustup import install_toolchain
from ..state_store import record_result

logger = logging.getLogger(__name__)


class InstallToolchainStep:
    step_id = "30_install_toolchain"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        dry_run = bool(cfg.get("dry_run", False))

        logger.info(
            "Installing toolchain from %s (profile=%s channel=%s components=%s)",
            TOOLCHAIN.installer_url,
            TOOLCHAIN.profile,
            TOOLCHAIN.channel,
            ",".join(TOOLCHAIN.components),
        )
        # Pipeline status is the shell's; the download status is only logged.
        _, ran = install_toolchain(TOOLCHAIN, dry_run=dry_run)
        record_result(state, self.step_id, ran)
        return state
