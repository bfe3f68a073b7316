"""
=============================================================================
TASK RUNNER: ONE THREAD PER REQUEST
=============================================================================

The accept loop must never wait for a request to be answered. Each
accepted connection is handed to TaskRunner.submit(), which starts a
fresh thread for it and returns immediately:

    accept loop                      worker threads
    ───────────                      ──────────────
    accept() ──► submit(conn A) ───► Request-0: read, dispatch, write
    accept() ──► submit(conn B) ───► Request-1: read, dispatch, write
    accept() ──► ...

There is no pool, queue or upper bound here: every
connection gets its own thread as soon as it is accepted. The caller
gets no handle back and never joins an individual task.

=============================================================================
FAULT CONTAINMENT
=============================================================================

A task that raises must not take anything else down with it. _run()
catches every exception, logs it with a traceback and counts it. The
thread then exits normally, so Python never reports an unhandled
exception in a thread.

=============================================================================
DRAINING
=============================================================================

Stopping the server does not cancel running tasks. wait() lets the
process entry point give in-flight requests time to finish before it
exits:

    server.stop()                 # no new connections
    runner.wait(timeout=30.0)     # let running requests complete

=============================================================================
"""

import threading
import time
import logging
from typing import Callable, Optional, Any


logger = logging.getLogger(__name__)


class TaskRunner:
    """
    Runs each submitted callable on its own daemon thread.

    Attributes:
        tasks_completed: Tasks that returned normally.
        tasks_failed: Tasks that raised.
    """

    def __init__(self, name_prefix: str = "Request"):
        self.name_prefix = name_prefix
        self.tasks_completed = 0
        self.tasks_failed = 0

        self._active: set[threading.Thread] = set()
        self._next_task_id = 0
        # Guards _active, the counters and _next_task_id; notified when a
        # task finishes so wait() can wake up.
        self._idle = threading.Condition()

    @property
    def active_count(self) -> int:
        """Number of tasks currently running."""
        with self._idle:
            return len(self._active)

    def submit(self, func: Callable[..., Any], args: tuple = ()) -> None:
        """
        Start func(*args) on a new thread and return immediately.

        Raises:
            RuntimeError: If the interpreter cannot start another thread.
        """
        with self._idle:
            task_id = self._next_task_id
            self._next_task_id += 1

            thread = threading.Thread(
                target=self._run,
                args=(func, args),
                name=f"{self.name_prefix}-{task_id}",
                daemon=True,
            )
            self._active.add(thread)

        try:
            thread.start()
        except RuntimeError:
            with self._idle:
                self._active.discard(thread)
                self._idle.notify_all()
            raise

    def _run(self, func: Callable[..., Any], args: tuple):
        """Thread body: run the task, contain and log any failure."""
        start_time = time.time()
        failed = False

        try:
            func(*args)
        except Exception as e:
            failed = True
            logger.exception(
                f"{threading.current_thread().name} failed after "
                f"{time.time() - start_time:.3f}s: {e}"
            )
        finally:
            with self._idle:
                if failed:
                    self.tasks_failed += 1
                else:
                    self.tasks_completed += 1
                self._active.discard(threading.current_thread())
                self._idle.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no task is running.

        Args:
            timeout: Maximum seconds to wait. None waits forever.

        Returns:
            True if all tasks finished, False on timeout.
        """
        with self._idle:
            return self._idle.wait_for(lambda: not self._active, timeout)

