"""
=============================================================================
THREAD POOL
=============================================================================

The handler contract says nothing about concurrency; the hosting server
decides. Ours runs each connection on a worker thread from a small pool:

    accept loop ──► [ queue of connections ] ──► Worker-0 ─► handler(environ)
                                              ├─► Worker-1 ─► handler(environ)
                                              └─► Worker-N ─► handler(environ)

    min_workers   threads started up front
    max_workers   more are added while every worker is busy and work waits
    queue_size    waiting connections before submit() says "no" (→ 503)

This is why a handler must not keep per-request state on itself: the same
handler object is being called from several threads at once.

Shutdown uses the "poison pill" pattern: one None per worker goes on the
queue, and a worker that pulls None exits.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: func(*args), plus when it was queued."""

    func: Callable[..., Any]
    args: tuple = ()
    timeout: Optional[float] = None
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """Pulls tasks off the shared queue until it gets a poison pill."""

    def __init__(self, task_queue: queue.Queue, worker_id: int, idle_timeout: float = 1.0):
        super().__init__(name=f"pyrack-worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout
        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0
        self._stop_event = threading.Event()

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._stop_event.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                if task is None:
                    break
                self._execute(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute(self, task: Task):
        self.state = WorkerState.BUSY
        started = time.time()
        try:
            waited = started - task.submitted_at
            if task.timeout and waited > task.timeout:
                logger.warning(
                    f"Task expired in queue (waited {waited:.2f}s, timeout {task.timeout}s)"
                )
                self.tasks_failed += 1
                return

            task.func(*task.args)
            self.tasks_completed += 1
        except Exception as e:
            # A failing task must not take the worker down with it
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def stop(self):
        self._stop_event.set()


class ThreadPool:
    """
    Bounded pool of worker threads.

        pool = ThreadPool(min_workers=2, max_workers=8)
        pool.start()
        pool.submit(handle, args=(conn,))
        pool.shutdown(timeout=30)
    """

    def __init__(self, min_workers: int = 4, max_workers: int = 16, queue_size: int = 100):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._workers: list = []
        self._lock = threading.Lock()
        self._next_id = 0
        self._started = False
        self._shutting_down = False

    def start(self):
        if self._started:
            return
        logger.info(f"Starting thread pool with {self.min_workers} workers")
        self._shutting_down = False
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
        self._started = True

    def _add_worker(self):
        # Caller holds self._lock
        worker = Worker(self._queue, self._next_id)
        self._next_id += 1
        self._workers.append(worker)
        worker.start()

    def submit(self, func: Callable[..., Any], args: tuple = (), timeout: Optional[float] = None) -> bool:
        """
        Queue func(*args) for a worker.

        Returns:
            False if the queue is full (the caller should answer 503).

        Raises:
            RuntimeError: if the pool isn't running.
        """
        if not self._started or self._shutting_down:
            raise RuntimeError("Thread pool is not running")

        try:
            self._queue.put(Task(func=func, args=args, timeout=timeout), block=False)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        with self._lock:
            all_busy = all(w.state == WorkerState.BUSY for w in self._workers)
            if all_busy and len(self._workers) < self.max_workers and self._queue.qsize() > 0:
                logger.debug(f"Scaling up to {len(self._workers) + 1} workers")
                self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued work finish first.
            timeout: Give up waiting after this many seconds.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutting_down = True

        if wait:
            deadline = None if timeout is None else time.time() + timeout
            while self._queue.unfinished_tasks:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Thread pool shutdown timed out, abandoning queued work")
                    break
                time.sleep(0.05)

        for worker in self._workers:
            worker.stop()
            try:
                self._queue.put(None, block=False)
            except queue.Full:
                pass

        for worker in self._workers:
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False
        logger.info("Thread pool stopped")

    @property
    def active_workers(self) -> int:
        return sum(1 for w in self._workers if w.is_alive())

    @property
    def queue_size(self) -> int:
        return self._queue.qsize()

    def stats(self) -> dict:
        return {
            "workers": len(self._workers),
            "busy": sum(1 for w in self._workers if w.state == WorkerState.BUSY),
            "queued": self._queue.qsize(),
            "completed": sum(w.tasks_completed for w in self._workers),
            "failed": sum(w.tasks_failed for w in self._workers),
        }
