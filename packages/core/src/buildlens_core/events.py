"""Build lifecycle events.

The host owns a BuildEventSource and fires build_finishing() once per
build. Listeners register against that source explicitly when the host is
wired together; there is no process-wide server object to hook into.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buildlens_core.host import RunningBuild

logger = logging.getLogger(__name__)


class BuildServerListener:
    """Base listener; override the hooks you need. Every hook defaults to a no-op."""

    def before_build_finish(self, build: RunningBuild) -> None:
        pass


class BuildEventSource:
    def __init__(self):
        self._listeners: list[BuildServerListener] = []

    @property
    def listeners(self) -> tuple[BuildServerListener, ...]:
        return tuple(self._listeners)

    def add_listener(self, listener: BuildServerListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: BuildServerListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def build_finishing(self, build: RunningBuild) -> None:
        for listener in list(self._listeners):
            logger.debug("Dispatching build-finishing for build %s to %s", build.build_id, type(listener).__name__)
            listener.before_build_finish(build)
