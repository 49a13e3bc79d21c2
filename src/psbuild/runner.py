# runner.py
from __future__ import annotations

import time

from .dag import TaskRegistry, resolve_order
from .errors import TOOL_HINTS, TaskBodyError, ToolMissing
from .model import BuildContext, TaskRun
from .ui.console import get_console


def run_task(
    registry: TaskRegistry,
    target: str,
    ctx: BuildContext,
    *,
    print_plan: bool = True,
) -> TaskRun:
    """
    Run `target` and everything it (transitively) needs, one task at a time.

    pending -> resolving -> executing -> done, or failed at the first task
    body that raises; nothing runs after a failure.

    Raises:
        UnknownTask / TaskCycleError: while resolving
        TaskBodyError: wrapping the first failing body
    """
    console = ctx.console or get_console()
    run = TaskRun(target=target)

    run.status = "resolving"
    try:
        run.order = resolve_order(registry, target)
    except Exception as e:
        run.status = "failed"
        run.error = e
        raise

    if print_plan:
        console.print_plan(run.order)

    run.status = "executing"
    for name in run.order:
        run.results[name] = "pending"

    for name in run.order:
        task = registry.get(name)
        if task.is_composite:
            run.results[name] = "ok"
            continue

        console.print_task_start(name)
        started = time.monotonic()
        try:
            task.action(ctx)
        except Exception as e:
            run.results[name] = "failed"
            run.status = "failed"
            err = TaskBodyError(name, e)
            err.run = run
            run.error = err
            hint = TOOL_HINTS.get(e.tool) if isinstance(e, ToolMissing) else None
            console.print_failure(name, str(e), exit_code=err.exit_code, hint=hint)
            _mark_not_run(run)
            raise err from e

        run.results[name] = "ok"
        console.print_task_done(name, time.monotonic() - started)

    run.status = "done"
    return run


def _mark_not_run(run: TaskRun) -> None:
    for name, status in run.results.items():
        if status == "pending":
            run.results[name] = "not run"
