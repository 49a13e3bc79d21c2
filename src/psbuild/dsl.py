# dsl.py
from __future__ import annotations

from typing import Iterable, List, Optional

from .model import Task, TaskAction


def task(
    name: str,
    action: Optional[TaskAction] = None,
    *,
    needs: Optional[Iterable[str]] = None,
    description: str = "",
    tools: Optional[Iterable[str]] = None,
) -> Task:
    """
    Task definition helper.

        task("Clean", clean, description="remove the output dir")
        task("Package", package, tools=["pwsh"])
        task("Build", needs=["Restore", "Clean", "Publish"])
    """
    needs_list = list(needs or [])
    if action is None and not needs_list:
        raise ValueError(f"task({name!r}) needs an action or at least one prerequisite")
    return Task(name=name, needs=needs_list, action=action, description=description, tools=list(tools or []))


class TaskBuilder:
    """
    Fluent alternative to task():

        TaskBuilder("Lint").depends_on("Restore").uses("pwsh").does(run_analyzer).build()
    """

    def __init__(self, name: str):
        self.name = name
        self._needs: List[str] = []
        self._action: Optional[TaskAction] = None
        self._description = ""
        self._tools: List[str] = []

    def depends_on(self, *task_names: str):
        self._needs.extend(task_names)
        return self

    def does(self, action: TaskAction):
        self._action = action
        return self

    def uses(self, *tools: str):
        self._tools.extend(tools)
        return self

    def describe(self, text: str):
        self._description = text
        return self

    def build(self) -> Task:
        return task(self.name, self._action, needs=self._needs, description=self._description, tools=self._tools)


def tasks(*defined: Task) -> List[Task]:
    """
    Project-file helper:

        from psbuild import tasks, task

        TASKS = tasks(
            task("Lint", lint),
            task("Build", needs=["Lint", "Restore", "Clean", "Publish", "ExternalHelp", "Package"]),
        )
    """
    return list(defined)
