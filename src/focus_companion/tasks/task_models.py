# src/focus_companion/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class TodoTask:
    id: int
    text: str
    completed: bool
    created_at: datetime
    completed_at: datetime | None = None
