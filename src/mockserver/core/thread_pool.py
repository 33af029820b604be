"""
=============================================================================
THREAD POOL
=============================================================================

One task per accepted connection, executed by a pool of worker threads.

    accept loop ──submit(conn)──► [ task queue ] ──get()──► Worker-0
                                                  ──get()──► Worker-1
                                                  ──get()──► Worker-N

Connections share nothing mutable: the only object every worker reads is
the route table, which never changes after startup, so no locking happens
on the request path. The lock below only guards the worker list and its
idle counts.

The queue is bounded. When it is full, submit(block=False) returns False
and the server turns the connection away instead of buffering it.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred function call waiting in the queue."""

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue.

    Loop: get task → None means stop → run it → task_done() → repeat.
    Exceptions raised by a task are logged and never kill the worker.
    A worker left idle for idle_timeout asks the pool whether it may retire.
    """

    def __init__(
        self,
        task_queue: queue.Queue,
        worker_id: int,
        idle_timeout: float = 60.0,
        can_retire: Optional[Callable[["Worker"], bool]] = None,
        on_idle: Optional[Callable[[], None]] = None,
    ):
        # daemon=True: workers never keep the process alive on exit
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout
        self.can_retire = can_retire
        self.on_idle = on_idle

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                if self.can_retire is not None and self.can_retire(self):
                    break
                continue

            try:
                if task is None:
                    break  # Poison pill
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

            if self.on_idle is not None:
                self.on_idle()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()
        logger.debug(f"Worker {self.worker_id} picked task after {start_time - task.submitted_at:.3f}s in queue")

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}")
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        self._shutdown.set()


class ThreadPool:
    """
    Thread pool for concurrent connection handling.

        pool = ThreadPool(min_workers=4)
        pool.start()
        pool.submit(handle_connection, args=(conn,))
        pool.shutdown(wait=True)

    =========================================================================
    SIZING
    =========================================================================

    A connection task can sit in a blocking read for the whole idle
    timeout, so a queued task must never wait behind such reads. Every
    submit reserves one idle worker for its task:

        unreserved idle worker left  →  reserve it
        none left                    →  start another worker

    A worker that finishes a task hands itself to a task still waiting for
    one, otherwise it becomes an unreserved idle worker again.

    max_workers=None (the default) removes the upper bound. With a bound,
    tasks beyond it wait in the queue. Workers above min_workers retire
    after idle_timeout seconds without work.

    =========================================================================
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: Optional[int] = None,
        queue_size: int = 100,
        idle_timeout: float = 5.0,
    ):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.max_queue_size = queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue(maxsize=queue_size)

        self._workers: list[Worker] = []
        self._lock = threading.Lock()  # Protects _workers, _idle, _waiting
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0
        self._idle = 0  # idle workers no queued task has reserved
        self._waiting = 0  # queued tasks without a reserved worker

    def start(self):
        """Start the minimum number of workers."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers} workers")
        self._shutdown = False
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
            self._idle = self.min_workers
            self._waiting = 0
        self._started = True

    def _add_worker(self) -> Worker:
        # Caller holds self._lock
        worker = Worker(
            task_queue=self._task_queue,
            worker_id=self._next_worker_id,
            idle_timeout=self.idle_timeout,
            can_retire=self._retire_worker,
            on_idle=self._worker_idle,
        )
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def _retire_worker(self, worker: Worker) -> bool:
        """Let an idle worker exit while the pool is above min_workers."""
        with self._lock:
            if self._shutdown or len(self._workers) <= self.min_workers:
                return False
            if self._idle <= 0:
                return False  # every idle worker is reserved for queued work
            self._idle -= 1
            if worker in self._workers:
                self._workers.remove(worker)
            logger.debug(f"Worker {worker.worker_id} retiring, {len(self._workers)} left")
            return True

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = False,
        queue_timeout: Optional[float] = None,
    ) -> bool:
        """
        Submit a task for execution.

        Returns:
            True if the task was queued, False if the queue was full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
        except queue.Full:
            return False

        self._reserve_worker()
        return True

    def _reserve_worker(self):
        """Reserve an idle worker for a queued task, starting one if needed."""
        with self._lock:
            if self._idle > 0:
                self._idle -= 1
            elif self.max_workers is None or len(self._workers) < self.max_workers:
                logger.debug(f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers")
                self._add_worker()
            else:
                self._waiting += 1

    def _worker_idle(self):
        with self._lock:
            if self._waiting > 0:
                self._waiting -= 1
            else:
                self._idle += 1

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Wait for queued tasks to finish before stopping workers.
            timeout: Give up waiting after this many seconds.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = time.time() + timeout if timeout else None
            while self._task_queue.unfinished_tasks:
                if deadline and time.time() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    break
                time.sleep(0.05)

        with self._lock:
            workers = list(self._workers)
            self._workers.clear()

        for worker in workers:
            worker.shutdown()
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass  # Worker will notice the shutdown flag instead

        for worker in workers:
            worker.join(timeout=2.0)

        self._started = False
        logger.info("Thread pool shutdown complete")

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def queue_size(self) -> int:
        """Tasks currently waiting in the queue."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
