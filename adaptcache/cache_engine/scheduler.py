"""Maintenance Scheduler - Named periodic background tasks with clean shutdown"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


@dataclass
class MaintenanceTask:
    """A periodic job and its bookkeeping"""
    name: str
    interval: float
    func: Callable[[], Any]
    runs: int = 0
    failures: int = 0
    last_error: Optional[str] = None
    timer: Optional[threading.Timer] = field(default=None, repr=False)


class MaintenanceScheduler:
    """Runs each registered task on its own daemon timer.

    A task reschedules itself after every run, whether it succeeded or not,
    until :meth:`shutdown` is called. Task errors are logged and counted,
    never propagated.
    """

    def __init__(self, name: str):
        self.name = name
        self.tasks: Dict[str, MaintenanceTask] = {}
        self._lock = threading.Lock()
        self._running = False
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def add_task(self, name: str, interval: float, func: Callable[[], Any]):
        if interval <= 0:
            raise ValueError(f"Task interval must be positive, got {interval}")

        with self._lock:
            if name in self.tasks:
                raise ValueError(f"Task '{name}' is already registered")
            task = MaintenanceTask(name=name, interval=interval, func=func)
            self.tasks[name] = task
            if self._running:
                self._schedule(task)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def task_names(self) -> List[str]:
        return list(self.tasks)

    def start(self):
        """Start every registered task timer"""
        with self._lock:
            if self._running:
                return
            self._running = True
            for task in self.tasks.values():
                self._schedule(task)

        self.logger.debug(f"Maintenance for '{self.name}' started with {len(self.tasks)} tasks")

    def shutdown(self):
        """Cancel all pending timers; running task bodies finish on their own"""
        with self._lock:
            self._running = False
            for task in self.tasks.values():
                if task.timer:
                    task.timer.cancel()
                    task.timer = None

        self.logger.debug(f"Maintenance for '{self.name}' stopped")

    def run_now(self, name: str) -> bool:
        """Run a task immediately on the calling thread; True if it succeeded"""
        task = self.tasks.get(name)
        if task is None:
            raise KeyError(f"Unknown maintenance task: {name}")
        return self._execute(task)

    def _schedule(self, task: MaintenanceTask):
        """Arm the next run; caller holds the scheduler lock"""
        task.timer = threading.Timer(task.interval, self._fire, args=(task,))
        task.timer.name = f"{self.name}-{task.name}"
        task.timer.daemon = True
        task.timer.start()

    def _fire(self, task: MaintenanceTask):
        try:
            self._execute(task)
        finally:
            with self._lock:
                if self._running:
                    self._schedule(task)

    def _execute(self, task: MaintenanceTask) -> bool:
        try:
            task.func()
            task.runs += 1
            return True
        except Exception as e:
            task.failures += 1
            task.last_error = str(e)
            self.logger.error(f"Maintenance task '{task.name}' for '{self.name}' failed: {e}")
            return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'running': self._running,
            'tasks': {
                name: {
                    'interval': task.interval,
                    'runs': task.runs,
                    'failures': task.failures,
                    'last_error': task.last_error,
                } for name, task in self.tasks.items()
            }
        }
