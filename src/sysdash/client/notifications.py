"""
Native desktop notifications for critical alerts.
"""

import asyncio
import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Set

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "sysdash critical alert"


class NotificationPermission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class Notifier(ABC):
    """
    Notification sink with a permission state.

    The store only calls ``notify`` while permission is GRANTED, and calls
    ``request_permission`` while it is still DEFAULT.
    """

    def __init__(self, permission: NotificationPermission = NotificationPermission.DEFAULT):
        self.permission = permission

    @abstractmethod
    def request_permission(self) -> NotificationPermission:
        pass

    @abstractmethod
    def notify(self, title: str, body: str, tag: str) -> None:
        pass

    async def drain(self) -> None:
        """Wait for notifications still being delivered."""


class NullNotifier(Notifier):
    """Never shows anything; permission stays denied."""

    def __init__(self):
        super().__init__(NotificationPermission.DENIED)

    def request_permission(self) -> NotificationPermission:
        return self.permission

    def notify(self, title: str, body: str, tag: str) -> None:
        logger.debug(f"Notification suppressed ({tag}): {body}")


class DesktopNotifier(Notifier):
    """
    Sends notifications through ``notify-send``.

    Permission is granted on request when the binary is on PATH and denied
    otherwise. ``tag`` becomes the notification's synchronous hint so a new
    alert of the same category replaces the previous bubble.
    """

    def __init__(self, command: str = "notify-send"):
        super().__init__(NotificationPermission.DEFAULT)
        self.command = command
        self._binary: Optional[str] = None
        self._pending: Set[asyncio.Future] = set()

    def request_permission(self) -> NotificationPermission:
        if self.permission is NotificationPermission.DEFAULT:
            self._binary = shutil.which(self.command)
            if self._binary:
                self.permission = NotificationPermission.GRANTED
            else:
                logger.warning(f"'{self.command}' not found, desktop notifications disabled")
                self.permission = NotificationPermission.DENIED
        return self.permission

    def notify(self, title: str, body: str, tag: str) -> None:
        """
        Show one notification.

        Inside a running event loop ``notify-send`` is handed to the loop's
        default executor and this returns immediately.
        """
        if self._binary is None:
            return
        argv = [
            self._binary,
            "--urgency=critical",
            f"--hint=string:x-canonical-private-synchronous:{tag}",
            title,
            body,
        ]
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._send(argv)
            return
        future = loop.run_in_executor(None, self._send, argv)
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _send(self, argv: List[str]) -> None:
        try:
            subprocess.run(
                argv,
                check=False,
                capture_output=True,
                timeout=5,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Failed to send desktop notification: {e}")
