"""Parent notifications.

There is no SMS/e-mail gateway; notifications are log records on a dedicated
logger so deployments can route them wherever they like.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("smart_hostel.notifications")


def notify_parent(action: str, student_name: str, details: str) -> None:
    logger.info("PARENT NOTIFICATION [%s]: Student %s - %s", action, student_name, details)
