# dag.py
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .errors import TaskCycleError, UnknownTask
from .model import Task, TaskAction


class TaskRegistry:
    """
    Named tasks and their prerequisites.

    Defining a task under an existing name replaces the earlier definition.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, Task] = {}

    def define(
        self,
        name: str,
        needs: Iterable[str] = (),
        action: Optional[TaskAction] = None,
        *,
        description: str = "",
        tools: Iterable[str] = (),
    ) -> Task:
        task = Task(name=name, needs=list(needs), action=action, description=description, tools=list(tools))
        self._tasks[name] = task
        return task

    def add(self, task: Task) -> Task:
        self._tasks[task.name] = task
        return task

    def get(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTask(name, self.names()) from None

    def names(self) -> List[str]:
        return list(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)


def resolve_order(registry: TaskRegistry, target: str) -> List[str]:
    """
    Linear execution order for `target`.

    Depth-first over each task's `needs` in declared order; a task is emitted
    after all of its needs and at most once. The target itself comes last.

    Raises:
        UnknownTask: target or one of the needs is not registered
        TaskCycleError: a task (transitively) needs itself
    """
    if target not in registry:
        raise UnknownTask(target, registry.names())

    order: List[str] = []
    done: Set[str] = set()

    # explicit stack instead of recursion: (task name, iterator over its needs)
    stack: List[Tuple[str, Iterator[str]]] = [(target, iter(registry.get(target).needs))]
    path: List[str] = [target]
    on_path: Set[str] = {target}

    while stack:
        name, needs = stack[-1]
        nxt = next(needs, None)

        if nxt is None:
            stack.pop()
            path.pop()
            on_path.discard(name)
            done.add(name)
            order.append(name)
            continue

        if nxt in done:
            continue
        if nxt in on_path:
            raise TaskCycleError(path[path.index(nxt):] + [nxt])
        if nxt not in registry:
            raise UnknownTask(nxt, registry.names(), required_by=name)

        stack.append((nxt, iter(registry.get(nxt).needs)))
        path.append(nxt)
        on_path.add(nxt)

    return order


def validate_graph(registry: TaskRegistry) -> None:
    """
    Check the whole graph up front: every need exists, no cycles.

    Raises the same errors as `resolve_order`.
    """
    for task in registry:
        for need in task.needs:
            if need not in registry:
                raise UnknownTask(need, registry.names(), required_by=task.name)
    for task in registry:
        resolve_order(registry, task.name)
