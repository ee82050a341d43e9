"""Notification sink. Applications replace it with their own toast system."""

from __future__ import annotations

import logging
from typing import Any, Dict


logger = logging.getLogger("modulator.notifier")


class Notifier:
    def notify(self, payload: Dict[str, Any]) -> None:
        text = payload.get("text") if isinstance(payload, dict) else payload
        kind = payload.get("type") if isinstance(payload, dict) else None
        logger.info("notification type=%s text=%s", kind or "info", text)
