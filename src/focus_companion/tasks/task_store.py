# src/focus_companion/tasks/task_store.py

from __future__ import annotations

import logging
import threading
from dataclasses import replace

from ..core.ports import Clock
from .task_models import TodoTask

logger = logging.getLogger(__name__)

MAX_TASK_TEXT = 500


class TaskStore:
    """
    In-memory per-user task list.

    Ids are per user: max(existing id) + 1, starting at 1.
    completed_task_count() is what the productivity score reads (TaskCountPort).

    Thread-safety:
    - a single lock guards all users (operations are tiny and never await)
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._tasks: dict[str, list[TodoTask]] = {}
        self._lock = threading.Lock()

    def add_task(self, user_id: str, text: str) -> TodoTask:
        text = (text or "").strip()
        if not text:
            raise ValueError("task text must not be empty")
        text = text[:MAX_TASK_TEXT]

        with self._lock:
            tasks = self._tasks.setdefault(user_id, [])
            task_id = max((t.id for t in tasks), default=0) + 1
            task = TodoTask(id=task_id, text=text, completed=False, created_at=self._clock.now())
            tasks.append(task)

        logger.info("Task added user=%s task_id=%d", user_id, task_id)
        return replace(task)

    def toggle_task(self, user_id: str, task_id: int) -> TodoTask | None:
        """Flip completion. Returns the updated task, or None if it does not exist."""
        with self._lock:
            for task in self._tasks.get(user_id, []):
                if task.id == task_id:
                    task.completed = not task.completed
                    task.completed_at = self._clock.now() if task.completed else None
                    logger.info("Task toggled user=%s task_id=%d completed=%s", user_id, task_id, task.completed)
                    return replace(task)
        return None

    def delete_task(self, user_id: str, task_id: int) -> bool:
        with self._lock:
            tasks = self._tasks.get(user_id, [])
            for i, task in enumerate(tasks):
                if task.id == task_id:
                    del tasks[i]
                    logger.info("Task deleted user=%s task_id=%d", user_id, task_id)
                    return True
        return False

    def list_tasks(self, user_id: str) -> list[TodoTask]:
        with self._lock:
            return [replace(t) for t in self._tasks.get(user_id, [])]

    def completed_task_count(self, user_id: str) -> int:
        with self._lock:
            return sum(1 for t in self._tasks.get(user_id, []) if t.completed)
