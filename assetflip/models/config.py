# assetflip/models/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from assetflip.models.environment import Environment

DEFAULT_MANIFEST_PATH = "assetflip-build.json"
DEFAULT_RETENTION_DAYS = 90
DEFAULT_DISPLAY_LIMIT = 20
DEFAULT_PROTECTED_BRANCH = "master"
DEFAULT_MAX_WORKERS = 8


@dataclass(frozen=True)
class FileGlob:
    pattern: str
    ignore: Tuple[str, ...] = ()


# Slack incoming webhook settings; present entirely or not at all
@dataclass(frozen=True)
class NotificationConfig:
    webhook_url: str
    username: str
    icon_emoji: str
    repo_url: str


@dataclass(frozen=True)
class ToolConfig:
    """Validated configuration handed to every component."""
    package_name: str
    bucket_names: Dict[str, str]            # server class -> bucket
    bucket_region: str
    base_path: str
    environments: Tuple[Environment, ...]
    file_globs: Tuple[FileGlob, ...] = ()
    local_file_paths: Tuple[str, ...] = ()
    notification: Optional[NotificationConfig] = None
    remote_activation_functions: Dict[str, str] = field(default_factory=dict)
    manifest_path: str = DEFAULT_MANIFEST_PATH
    retention_days: int = DEFAULT_RETENTION_DAYS
    display_limit: int = DEFAULT_DISPLAY_LIMIT
    protected_branch_name: str = DEFAULT_PROTECTED_BRANCH
    max_workers: int = DEFAULT_MAX_WORKERS

    @property
    def retention(self) -> timedelta:
        return timedelta(days=self.retention_days)

    def bucket_for(self, server_class: str) -> str:
        return self.bucket_names[server_class]

    def server_classes(self) -> List[str]:
        """Distinct server classes in the order environments list them."""
        seen: List[str] = []
        for env in self.environments:
            if env.server_class not in seen:
                seen.append(env.server_class)
        return seen

    def environment_keys(self) -> List[str]:
        return [env.key for env in self.environments]


__all__ = [
    "FileGlob",
    "NotificationConfig",
    "ToolConfig",
    "DEFAULT_MANIFEST_PATH",
    "DEFAULT_RETENTION_DAYS",
    "DEFAULT_DISPLAY_LIMIT",
    "DEFAULT_PROTECTED_BRANCH",
    "DEFAULT_MAX_WORKERS",
]
