from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable

from .errors import RpcError
from .logging import get_logger


LOG = get_logger(__name__)

TaskId = int


class TaskKind(Enum):
    ADD = ("Adding", "Added", "add")
    DELETE = ("Deleting", "Deleted", "delete")
    START = ("Starting", "Started", "start")
    STOP = ("Stopping", "Stopped", "stop")

    def __init__(self, progressive: str, past: str, verb: str):
        self.progressive = progressive
        self.past = past
        self.verb = verb


class TaskState(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class StatusTask:
    id: TaskId
    kind: TaskKind
    description: str
    state: TaskState = TaskState.PENDING
    reason: str | None = None

    @property
    def resolved(self) -> bool:
        return self.state is not TaskState.PENDING

    def summary(self) -> str:
        if self.state is TaskState.PENDING:
            return f"{self.kind.progressive} {self.description}..."
        if self.state is TaskState.SUCCESS:
            return f"{self.kind.past} {self.description}"
        return f"Failed to {self.kind.verb} {self.description}: {self.reason}"


class TaskRegistry:
    """In-flight and finished user commands, oldest first.

    Tasks stay listed until acknowledged; only resolved tasks can be.
    """

    def __init__(self) -> None:
        self._tasks: dict[TaskId, StatusTask] = {}
        self._ids = itertools.count(1)

    def register(self, kind: TaskKind, description: str) -> TaskId:
        task_id = next(self._ids)
        self._tasks[task_id] = StatusTask(task_id, kind, description)
        return task_id

    def resolve(self, task_id: TaskId, error: str | None = None) -> StatusTask:
        """Mark a task successful, or failed with ``error`` as the reason."""
        task = self._tasks[task_id]
        if error is None:
            task = replace(task, state=TaskState.SUCCESS, reason=None)
        else:
            task = replace(task, state=TaskState.FAILED, reason=error)
        self._tasks[task_id] = task
        return task

    def acknowledge(self, task_id: TaskId) -> bool:
        task = self._tasks.get(task_id)
        if task is None or not task.resolved:
            return False
        del self._tasks[task_id]
        return True

    def get(self, task_id: TaskId) -> StatusTask | None:
        return self._tasks.get(task_id)

    def list(self) -> tuple[StatusTask, ...]:
        return tuple(self._tasks.values())

    def latest(self) -> StatusTask | None:
        if not self._tasks:
            return None
        return self._tasks[max(self._tasks)]

    def __len__(self) -> int:
        return len(self._tasks)


class CommandRunner:
    """Issues mutating RPC calls in the background and records their outcome.

    ``submit`` returns as soon as the task is registered; the call's result
    arrives later through the registry. Failures are also reported through
    ``on_error(title, message)``.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        *,
        on_settled: Callable[[StatusTask], None] | None = None,
        on_error: Callable[[str, str], None] | None = None,
    ):
        self.registry = registry
        self.on_settled = on_settled
        self.on_error = on_error
        self._jobs: set[asyncio.Task] = set()

    def submit(self, kind: TaskKind, description: str, call: Callable[[], Awaitable[object]]) -> TaskId:
        task_id = self.registry.register(kind, description)
        LOG.info("Task %s: %s %s", task_id, kind.verb, description)
        job = asyncio.get_running_loop().create_task(self._run(task_id, call))
        self._jobs.add(job)
        job.add_done_callback(self._jobs.discard)
        return task_id

    async def _run(self, task_id: TaskId, call: Callable[[], Awaitable[object]]) -> None:
        try:
            await call()
        except RpcError as exc:
            task = self.registry.resolve(task_id, str(exc))
            LOG.error("Task %s failed: %s", task_id, exc)
            if self.on_error:
                self.on_error(f"Failed to {task.kind.verb}", str(exc))
        except Exception as exc:  # anything the client did not wrap
            task = self.registry.resolve(task_id, str(exc) or type(exc).__name__)
            LOG.exception("Task %s crashed", task_id)
            if self.on_error:
                self.on_error(f"Failed to {task.kind.verb}", task.reason)
        else:
            task = self.registry.resolve(task_id)
            LOG.info("Task %s done", task_id)
        if self.on_settled:
            self.on_settled(task)

    @property
    def in_flight(self) -> int:
        return len(self._jobs)

    async def wait_idle(self) -> None:
        while self._jobs:
            await asyncio.gather(*list(self._jobs))
