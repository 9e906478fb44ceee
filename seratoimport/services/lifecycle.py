"""
Application Lifecycle Service

Quits and relaunches Serato DJ Pro so it picks up the new database entries,
crate and analysis markers. Exit statuses are not checked.
"""

import subprocess
import time
from typing import Callable, Optional, Protocol, runtime_checkable

from ..core.exceptions import LifecycleError
from ..utils.logging_config import get_logger


@runtime_checkable
class LifecycleController(Protocol):
    """Capability: quit and launch an application by name"""

    def quit(self, app_name: str) -> None:
        ...

    def launch(self, app_name: str) -> None:
        ...


class MacOSLifecycleController:
    """Uses AppleScript to quit and 'open -a' to launch"""

    def __init__(self, timeout: Optional[int] = 60):
        self.timeout = timeout
        self.logger = get_logger('lifecycle')

    def quit(self, app_name: str) -> None:
        self._run(['osascript', '-e', f'quit app "{app_name}"'])

    def launch(self, app_name: str) -> None:
        self._run(['open', '-a', app_name])

    def _run(self, command):
        self.logger.debug(f"Running: {' '.join(command)}")
        try:
            subprocess.run(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise LifecycleError(
                f"Could not run {command[0]}",
                details=str(e)
            )


def relaunch_application(controller: LifecycleController, app_name: str,
                         grace_period: float = 2.0,
                         sleep: Callable[[float], None] = time.sleep) -> None:
    """
    Quit the application, wait a fixed grace period and launch it again

    Raises:
        LifecycleError: If the controller cannot issue a command
    """
    logger = get_logger('lifecycle')
    logger.info(f"Restarting {app_name}...")
    controller.quit(app_name)
    sleep(grace_period)
    controller.launch(app_name)
