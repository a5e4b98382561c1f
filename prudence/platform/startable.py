"""Starting and stopping groups of long-running services."""

from __future__ import annotations

import abc
import logging
import threading
from typing import Iterable

log = logging.getLogger("prudence.platform")


class Startable(abc.ABC):
    """A service that can be started (blocking) and stopped."""

    @abc.abstractmethod
    def start(self) -> None:
        """Run the service; may block until stopped."""

    @abc.abstractmethod
    def stop(self) -> None:
        """Stop the service."""


class StartGroup:
    """Runs each startable in its own thread and stops them together."""

    def __init__(self, startables: Iterable[Startable]):
        self.startables = list(startables)
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        log.info("starting")
        with self._lock:
            for startable in self.startables:
                thread = threading.Thread(target=self._run, args=(startable,), daemon=True)
                self._threads.append(thread)
                thread.start()

    @staticmethod
    def _run(startable: Startable) -> None:
        try:
            startable.start()
        except Exception as error:  # noqa: BLE001 - each service fails alone
            log.error("%s", error)

    def stop(self) -> None:
        log.info("stopping")
        with self._lock:
            for startable in self.startables:
                try:
                    startable.stop()
                except Exception as error:  # noqa: BLE001
                    log.error("%s", error)
            for thread in self._threads:
                thread.join()
            self._threads.clear()
        log.info("stopped")


_start_group: StartGroup | None = None
_start_group_lock = threading.Lock()


def start(startables: Iterable[Startable]) -> None:
    """Stop the running group, if any, and start a new one."""
    global _start_group
    stop()
    with _start_group_lock:
        _start_group = StartGroup(startables)
        _start_group.start()


def stop() -> None:
    """Stop the running group, if any."""
    global _start_group
    with _start_group_lock:
        if _start_group is not None:
            _start_group.stop()
            _start_group = None