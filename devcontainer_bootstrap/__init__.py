"""Development container bootstrap.

Provisions a fresh container for Rust work, in a fixed order:
- refresh the apt package index
- install curl, git and gcc
- install the nightly Rust toolchain via rustup (minimal profile, rustfmt + clippy)
- activate $HOME/.cargo/env and print rustup/cargo/rustc versions

Each run is recorded in a JSON/YAML state file.
"""

__all__ = []
