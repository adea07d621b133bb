import asyncio
import logging
from typing import Any, List, Optional, Tuple

from platearm.tasks.errors import QueueFullError
from platearm.tasks.task import Task
from platearm.tasks.visitor import TaskRenderer

logger = logging.getLogger(__name__)


class TaskQueue:
  """Tasks waiting to be executed, in the order they were appended.

  Any number of producers may `append` concurrently. Only the execution loop takes tasks out.
  Every task is delivered exactly once.

  The queue is unbounded by default. With a `maxsize`, `append` waits until there is room, which
  holds back the producer (an ingestion connection stops reading), and `append_nowait` raises
  `QueueFullError` instead.

  Every appended task is also kept in an append-ordered log, so views can show and draw what was
  sent to the arm.
  """

  def __init__(self, maxsize: int = 0):
    self._queue: "asyncio.Queue[Task]" = asyncio.Queue(maxsize=maxsize)
    self._log: List[Task] = []

  @property
  def maxsize(self) -> int:
    return self._queue.maxsize

  def qsize(self) -> int:
    """The number of tasks waiting to be executed."""
    return self._queue.qsize()

  def empty(self) -> bool:
    return self._queue.empty()

  @property
  def tasks(self) -> Tuple[Task, ...]:
    """All tasks appended so far, executed or not, oldest first."""
    return tuple(self._log)

  def clear_log(self):
    self._log.clear()

  async def append(self, task: Task):
    """Append a task, waiting for room if the queue is bounded and full."""
    await self._queue.put(task)
    self._log.append(task)
    logger.debug("queued %s (%d waiting)", task, self.qsize())

  def append_nowait(self, task: Task):
    try:
      self._queue.put_nowait(task)
    except asyncio.QueueFull as e:
      raise QueueFullError(f"Task queue is full ({self.maxsize} tasks)") from e
    self._log.append(task)

  async def take_next(self) -> Task:
    """Remove and return the oldest task, waiting if there is none."""
    task = await self._queue.get()
    self._queue.task_done()
    return task

  def take_nowait(self) -> Optional[Task]:
    """Remove and return the oldest task, or `None` if the queue is empty."""
    try:
      task = self._queue.get_nowait()
    except asyncio.QueueEmpty:
      return None
    self._queue.task_done()
    return task

  def draw_tasks(self, renderer: TaskRenderer, surface: Any, scale: float):
    """Ask every logged task to draw itself with `renderer` on `surface`, at `scale` pixels per
    centimeter."""
    for task in self.tasks:
      task.dispatch(renderer, surface, scale)
