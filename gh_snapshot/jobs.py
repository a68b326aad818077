# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Named background jobs backed by lock files.

A job named `download-repos` owns `<jobs_dir>/download-repos.lock` for as long
as its process lives:

1. LOCK: the spawning process takes an exclusive flock on the lock file
   (non-blocking; if it is already held the job is running)
2. SPAWN: the job is started in its own session with the locked descriptor
   passed through (`pass_fds`), so the child shares the lock
3. HAND OFF: the parent closes its copy; the lock now lives exactly as long
   as the child and is released by the kernel when it exits, however it exits

Any process can ask `is_running()`; the answer does not depend on PID reuse
or on the job cleaning up after itself.
"""

from __future__ import annotations

import fcntl
import logging
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

_logger = logging.getLogger(__name__)


class JobAlreadyRunningError(Exception):
    """Not a failure: another process already runs the named job."""

    def __init__(self, *, name: str):
        super().__init__(f"{name} job already running")
        self.name = str(name)


class JobSpawnError(Exception):
    def __init__(self, *, name: str, message: str):
        super().__init__(message)
        self.name = str(name)


class JobSupervisor:
    """Registry of detached background jobs, deduplicated by name.

    Example:
        jobs = JobSupervisor(jobs_dir())
        if not jobs.is_running("download-repos"):
            jobs.spawn_detached("download-repos", [sys.executable, "-m", "gh_snapshot", "--download", "repos"])
        jobs.request_rerun_after(0.5)
    """

    def __init__(self, jobs_dir: Path):
        self._jobs_dir = Path(jobs_dir)
        # Rerun hint for the caller's output layer (seconds), None if nobody asked.
        self.rerun_after: Optional[float] = None

    @property
    def jobs_dir(self) -> Path:
        return self._jobs_dir

    def _check_name(self, name: str) -> str:
        n = str(name or "")
        if not n or n.startswith(".") or "/" in n or "\\" in n:
            raise ValueError(f"invalid job name: {name!r}")
        return n

    def lock_path(self, name: str) -> Path:
        return self._jobs_dir / f"{self._check_name(name)}.lock"

    def log_path(self, name: str) -> Path:
        return self._jobs_dir / f"{self._check_name(name)}.log"

    def is_running(self, name: str) -> bool:
        """True if a process currently holds the job's lock."""
        path = self.lock_path(name)
        if not path.exists():
            return False
        try:
            fh = open(path, "a")
        except OSError:
            return False
        try:
            try:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError:
                return True
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
            return False
        finally:
            fh.close()

    def pid_of(self, name: str) -> Optional[int]:
        """PID recorded by the last spawn of `name` (may be stale if the job finished)."""
        try:
            txt = self.lock_path(name).read_text().strip()
        except FileNotFoundError:
            return None
        try:
            return int(txt) if txt else None
        except ValueError:
            return None

    def spawn_detached(self, name: str, argv: Sequence[str], *, env: Optional[Mapping[str, str]] = None) -> int:
        """Start `argv` as the job `name` unless it is already running.

        stdout/stderr of the job go to `log_path(name)`, truncated on every
        start so the file only ever holds the latest run.

        Returns:
            PID of the started process.

        Raises:
            JobAlreadyRunningError: the job lock is held by another process
            JobSpawnError: the jobs directory, lock file, log file or process could not be set up
        """
        cmd: List[str] = [str(a) for a in argv]
        if not cmd:
            raise ValueError("empty job command")
        lock_path = self.lock_path(name)
        log_path = self.log_path(name)

        try:
            self._jobs_dir.mkdir(parents=True, exist_ok=True)
            fh = open(lock_path, "a+")
        except OSError as e:
            raise JobSpawnError(name=name, message=f"failed to start {name}: {e}") from e
        try:
            try:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError:
                raise JobAlreadyRunningError(name=name) from None

            try:
                log_fh = open(log_path, "wb")
            except OSError as e:
                raise JobSpawnError(name=name, message=f"failed to start {name}: {e}") from e
            try:
                proc = subprocess.Popen(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=log_fh,
                    stderr=subprocess.STDOUT,
                    start_new_session=True,
                    pass_fds=(fh.fileno(),),
                    env=dict(env) if env is not None else None,
                )
            except OSError as e:
                raise JobSpawnError(name=name, message=f"failed to start {name}: {e}") from e
            finally:
                log_fh.close()

            fh.seek(0)
            fh.truncate()
            fh.write(f"{proc.pid}\n")
            fh.flush()
            _logger.info("Started %s job (pid %d): %s", name, proc.pid, " ".join(cmd))
            return proc.pid
        finally:
            # The child keeps its inherited descriptor, and with it the lock.
            fh.close()

    def request_rerun_after(self, delay_s: float) -> None:
        """Ask the caller to run the query again after `delay_s` seconds (never blocks)."""
        delay = max(0.0, float(delay_s))
        self.rerun_after = delay if self.rerun_after is None else min(self.rerun_after, delay)
