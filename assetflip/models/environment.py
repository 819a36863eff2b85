# assetflip/models/environment.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from assetflip.models.build import short_hash

UNRELEASED = "Unreleased!"


# A release target from the config document; read-only to the core
@dataclass(frozen=True)
class Environment:
    key: str
    label: str
    parameter_name: str      # SSM parameter holding the release pointer
    server_class: str        # selects the bucket and, optionally, the activation function
    protected_branch: bool = False
    notification_channel: Optional[str] = None


# What is live for one environment right now, fetched from the parameter store
@dataclass(frozen=True)
class EnvironmentRelease:
    environment: Environment
    released_hash: Optional[str] = None
    release_timestamp: Optional[datetime] = None

    @property
    def released_hash_short(self) -> str:
        if not self.released_hash:
            return UNRELEASED
        return short_hash(self.released_hash)

    @property
    def key(self) -> str:
        return self.environment.key


__all__ = ["Environment", "EnvironmentRelease", "UNRELEASED"]
