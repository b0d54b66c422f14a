"""
Background execution of sync work with observable handles.

Work submitted here runs as an asyncio task. The caller gets a handle whose
state, result and error can be inspected or awaited; failures are logged and
kept on the handle.
"""

import asyncio
import logging
import uuid
from collections import OrderedDict
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SyncTaskHandle:
    """
    Observable handle for a submitted sync task.
    """

    def __init__(self, name: str):
        self.task_id = uuid.uuid4().hex
        self.name = name
        self.state = TaskState.PENDING
        self.result: Any = None
        self.error: Optional[str] = None
        self.submitted_at = datetime.now(UTC)
        self.finished_at: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self.state in (TaskState.SUCCEEDED, TaskState.FAILED, TaskState.CANCELLED)

    async def wait(self) -> Any:
        """
        Wait for the task to finish.

        Returns:
            The task result, or None if it failed (see ``error``)
        """
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.result

    def to_dict(self) -> dict[str, Any]:
        result = self.result.to_dict() if hasattr(self.result, "to_dict") else self.result
        return {
            "task_id": self.task_id,
            "name": self.name,
            "state": self.state.value,
            "result": result,
            "error": self.error,
            "submitted_at": self.submitted_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class SyncTaskRunner:
    """
    Runs sync coroutines in the background and keeps a bounded history.
    """

    def __init__(self, history_limit: int = 200):
        self.history_limit = history_limit
        self._handles: "OrderedDict[str, SyncTaskHandle]" = OrderedDict()
        self._accepting = True

    def submit(self, name: str, coro: Coroutine[Any, Any, Any]) -> SyncTaskHandle:
        """
        Schedule a coroutine.

        Args:
            name: Human readable task name for logs
            coro: Coroutine to run

        Returns:
            SyncTaskHandle: Handle to observe the task
        """
        if not self._accepting:
            coro.close()
            raise RuntimeError("Task runner is shut down")

        handle = SyncTaskHandle(name)
        handle._task = asyncio.create_task(self._run(handle, coro), name=f"sync:{name}")
        self._handles[handle.task_id] = handle
        self._trim_history()

        logger.info(f"📤 Submitted sync task {name} [{handle.task_id}]")
        return handle

    def get(self, task_id: str) -> Optional[SyncTaskHandle]:
        return self._handles.get(task_id)

    def active_count(self) -> int:
        return sum(1 for handle in self._handles.values() if not handle.done)

    async def shutdown(self, timeout: float = 10.0) -> None:
        """
        Stop accepting work, wait for running tasks and cancel stragglers.
        """
        self._accepting = False
        pending = [h._task for h in self._handles.values() if h._task is not None and not h._task.done()]
        if not pending:
            return

        logger.info(f"⏳ Waiting for {len(pending)} sync task(s) to finish")
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.wait(still_running)
            logger.warning(f"Cancelled {len(still_running)} sync task(s) on shutdown")

    async def _run(self, handle: SyncTaskHandle, coro: Coroutine[Any, Any, Any]) -> None:
        handle.state = TaskState.RUNNING
        try:
            handle.result = await coro
            handle.state = TaskState.SUCCEEDED
            logger.info(f"✅ Sync task {handle.name} [{handle.task_id}] finished")
        except asyncio.CancelledError:
            handle.state = TaskState.CANCELLED
            handle.error = "cancelled"
            raise
        except Exception as e:
            handle.state = TaskState.FAILED
            handle.error = f"{type(e).__name__}: {e}"
            logger.exception(f"❌ Sync task {handle.name} [{handle.task_id}] failed")
        finally:
            handle.finished_at = datetime.now(UTC)

    def _trim_history(self) -> None:
        """Drop the oldest finished handles beyond the limit; unfinished ones are kept."""
        excess = len(self._handles) - self.history_limit
        if excess <= 0:
            return
        for task_id in [task_id for task_id, handle in self._handles.items() if handle.done][:excess]:
            del self._handles[task_id]
