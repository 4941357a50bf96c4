from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.pkg import apt_update
from ..state_store import record_result

logger = logging.getLogger(__name__)


class RefreshIndexStep:
    step_id = "10_refresh_index"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        dry_run = bool(cfg.get("dry_run", False))
        logger.info("Refreshing the apt package index")
        record_result(state, self.step_id, apt_update(dry_run=dry_run))
        return state
