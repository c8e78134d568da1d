#!/usr/bin/env python3
"""
PVGUARD CONFIGURATION
---------------------
Runtime settings, read from the GitHub Actions environment and
overridable from the command line.

Author: PVGuard Team
"""

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Tuple

from pvguard.core.errors import ConfigError

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class GuardConfig:
    repository: str                 # owner/repo
    event_name: str
    event_path: str
    token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    annotations: bool = False       # Emit GitHub workflow commands instead of styled text

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "GuardConfig":
        """
        Builds the configuration from environment variables, then applies
        any non-None override (typically parsed CLI flags).
        """
        env = os.environ if environ is None else environ
        values = {
            "repository": env.get("GITHUB_REPOSITORY", ""),
            "event_name": env.get("GITHUB_EVENT_NAME", ""),
            "event_path": env.get("GITHUB_EVENT_PATH", ""),
            "token": env.get("GITHUB_TOKEN") or None,
            "api_url": env.get("GITHUB_API_URL") or DEFAULT_API_URL,
            "annotations": env.get("GITHUB_ACTIONS", "").lower() == "true",
        }
        config = cls(**values)
        config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
        config.validate()
        return config

    def validate(self):
        if not self.repository:
            raise ConfigError("The repository is not set (GITHUB_REPOSITORY or --repository)")
        owner, _, repo = self.repository.partition("/")
        if not owner or not repo or "/" in repo:
            raise ConfigError(f"The repository \"{self.repository}\" is not of the form owner/repo")
        if not self.event_name:
            raise ConfigError("The event name is not set (GITHUB_EVENT_NAME or --event-name)")
        if not self.event_path:
            raise ConfigError("The event payload path is not set (GITHUB_EVENT_PATH or --event-path)")
        if self.timeout <= 0:
            raise ConfigError(f"The timeout {self.timeout} must be positive")

    @property
    def owner_and_repo(self) -> Tuple[str, str]:
        owner, _, repo = self.repository.partition("/")
        return owner, repo
