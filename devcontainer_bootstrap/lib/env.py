from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Paths:
    state_default: str = "/var/lib/devcontainer-bootstrap/state.json"
    log_default: str = "/var/log/devcontainer-bootstrap.log"


@dataclass(frozen=True)
class Toolchain:
    installer_url: str = "https://sh.rustup.rs"
    profile: str = "minimal"
    channel: str = "nightly"
    components: tuple[str, ...] = ("rustfmt", "clippy")

    def installer_args(self) -> list[str]:
        return [
            "--profile",
            self.profile,
            "--default-toolchain",
            self.channel,
            "--component",
            ",".join(self.components),
            "-y",
        ]


PATHS = Paths()
TOOLCHAIN = Toolchain()

SYSTEM_PACKAGES = ("curl", "git", "gcc")

# Printed in this order after activation.
VERSION_COMMANDS = (
    ("rustup", "--version"),
    ("cargo", "--version"),
    ("rustc", "--version"),
)


def cargo_env_file() -> Path:
    """$HOME/.cargo/env, resolved when called so HOME changes are honoured."""
    return Path(os.environ.get("HOME") or Path.home()) / ".cargo" / "env"
