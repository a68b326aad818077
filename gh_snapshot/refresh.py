# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Single-flight background refresh of snapshots."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, Sequence

from common import DEFAULT_RERUN_DELAY_S
from common_github.exceptions import NotAuthenticatedError
from .jobs import JobAlreadyRunningError

if TYPE_CHECKING:  # pragma: no cover
    from .jobs import JobSupervisor

_logger = logging.getLogger(__name__)


class RefreshStatus(Enum):
    SPAWNED = "spawned"
    ALREADY_RUNNING = "already_running"


class RefreshCoordinator:
    """Starts at most one background download per resource.

    The caller is always asked to rerun shortly, whether or not a new job was
    started, so the next query picks up whatever the running job writes.
    """

    def __init__(
        self,
        supervisor: "JobSupervisor",
        *,
        is_authenticated: Callable[[], bool],
        rerun_delay_s: float = DEFAULT_RERUN_DELAY_S,
    ):
        self.supervisor = supervisor
        self._is_authenticated = is_authenticated
        self.rerun_delay_s = float(rerun_delay_s)

    @staticmethod
    def job_name(resource_key: str) -> str:
        return f"download-{resource_key}"

    def ensure_refreshing(self, resource_key: str, refresh_command: Sequence[str]) -> RefreshStatus:
        """Make sure a download job for `resource_key` is running.

        Raises:
            NotAuthenticatedError: no credentials; the job would fail anyway.
            JobSpawnError: the job process could not be started.
        """
        self.supervisor.request_rerun_after(self.rerun_delay_s)

        name = self.job_name(resource_key)
        if self.supervisor.is_running(name):
            _logger.info("%s job already running (pid %s).", name, self.supervisor.pid_of(name))
            return RefreshStatus.ALREADY_RUNNING

        if not self._is_authenticated():
            raise NotAuthenticatedError()

        try:
            self.supervisor.spawn_detached(name, list(refresh_command))
        except JobAlreadyRunningError:
            # Lost the race against another query between is_running() and the spawn.
            _logger.info("%s job already running (pid %s).", name, self.supervisor.pid_of(name))
            return RefreshStatus.ALREADY_RUNNING
        return RefreshStatus.SPAWNED
