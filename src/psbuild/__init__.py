from .dsl import task, tasks, TaskBuilder
from .dag import TaskRegistry, resolve_order
from .runner import run_task
from .model import BuildContext, ProjectSettings, SearchPathContext, Task

__all__ = [
    "task", "tasks", "TaskBuilder",
    "TaskRegistry", "resolve_order", "run_task",
    "BuildContext", "ProjectSettings", "SearchPathContext", "Task",
]
