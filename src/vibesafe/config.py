"""Global configuration — XDG paths, env vars, scanner tunables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

_TRUTHY = {"1", "true", "yes", "on"}


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "vibesafe"
    return Path.home() / ".config" / "vibesafe"


@dataclass
class VibeSafeConfig:
    """Application-wide configuration."""

    config_dir: Path = field(default_factory=_default_config_dir)
    policy_dirs: list[Path] = field(default_factory=list)
    osv_url: str = "https://api.osv.dev"
    osv_timeout: float = 30.0
    osv_batch_size: int = 1000
    hydrate_vulnerabilities: bool = True
    offline: bool = False
    max_workers: int = 8
    max_file_size: int = 1_048_576
    entropy_threshold: float = 4.0
    min_entropy_length: int = 20
    respect_gitignore: bool = False

    @classmethod
    def load(cls) -> VibeSafeConfig:
        """Load config from environment variables with XDG defaults."""
        config = cls()

        env_url = os.environ.get("VIBESAFE_OSV_URL")
        if env_url:
            config.osv_url = env_url.rstrip("/")

        env_timeout = os.environ.get("VIBESAFE_OSV_TIMEOUT")
        if env_timeout:
            config.osv_timeout = float(env_timeout)

        env_workers = os.environ.get("VIBESAFE_MAX_WORKERS")
        if env_workers:
            config.max_workers = max(1, int(env_workers))

        env_entropy = os.environ.get("VIBESAFE_ENTROPY_THRESHOLD")
        if env_entropy:
            config.entropy_threshold = float(env_entropy)

        env_gitignore = os.environ.get("VIBESAFE_RESPECT_GITIGNORE")
        if env_gitignore:
            config.respect_gitignore = env_gitignore.lower() in _TRUTHY

        env_offline = os.environ.get("VIBESAFE_OFFLINE")
        if env_offline:
            config.offline = env_offline.lower() in _TRUTHY

        # Add config dir's policies/ subdirectory if it exists
        policies_dir = config.config_dir / "policies"
        if policies_dir.is_dir():
            config.policy_dirs.append(policies_dir)

        return config
