# assetflip/services/notifier.py
from __future__ import annotations

import logging

import requests

from assetflip.errors import NotificationError
from assetflip.models.config import NotificationConfig

logger = logging.getLogger(__name__)


class SlackNotifier:
    """Posts release announcements to a Slack incoming webhook."""

    def __init__(self, config: NotificationConfig, timeout: float = 10.0, session=None):
        self.config = config
        self.timeout = timeout
        self._http = session or requests

    def commit_url(self, revision_id: str) -> str:
        return f"{self.config.repo_url}/commit/{revision_id}"

    def send(self, channel: str, text: str) -> None:
        payload = {
            "username": self.config.username,
            "icon_emoji": self.config.icon_emoji,
            "channel": channel,
            "text": text,
        }
        try:
            response = self._http.post(self.config.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Slack notification to {channel} failed: {e}") from e
        logger.info(f"Sent release notification to {channel}")
