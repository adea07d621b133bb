import contextlib
import logging
from typing import Iterator, Optional

from platearm.arm.channel import CommandChannel
from platearm.arm.errors import CommandChannelError
from platearm.arm.state import ArmState
from platearm.resources.errors import ResolutionError
from platearm.tasks.queue import TaskQueue
from platearm.tasks.task import Task

logger = logging.getLogger(__name__)


class ExecutionLoop:
  """The single consumer of the task queue, and the only writer of the arm state.

  Tasks are executed one at a time, in the order they are taken from the queue. A task whose well
  cannot be resolved is skipped, and so is a task that fails with any other error (logged with its
  traceback). A failure to write to the command channel ends the pass: it is raised to the caller,
  and the tasks still in the queue stay there.
  """

  def __init__(self, queue: TaskQueue, arm_state: ArmState, channel: CommandChannel):
    self.queue = queue
    self.arm_state = arm_state
    self.channel = channel
    self.num_executed = 0
    self.num_skipped = 0
    self.failed_task: Optional[Task] = None

  @contextlib.contextmanager
  def _writing(self) -> Iterator[None]:
    self.arm_state.claim()
    try:
      yield
    finally:
      self.arm_state.release()

  async def _execute(self, task: Task) -> bool:
    logger.debug("executing %s at %s", task, self.arm_state.position)
    try:
      await task.execute(self.arm_state, self.channel)
    except ResolutionError as e:
      self.num_skipped += 1
      logger.warning("skipping '%s': %s", task, e)
      return False
    except CommandChannelError:
      self.failed_task = task
      logger.error("command channel failed while executing '%s', arm at %s",
                   task, self.arm_state.position)
      raise
    except Exception:  # pylint: disable=broad-except
      self.num_skipped += 1
      logger.exception("skipping '%s' after an unexpected error", task)
      return False
    self.num_executed += 1
    return True

  async def execute_next(self) -> bool:
    """Wait for the next task and execute it.

    Returns:
      `True` if the task was executed, `False` if it was skipped because a well could not be
      resolved or the task failed for another reason.

    Raises:
      CommandChannelError: if a command could not be sent.
    """
    with self._writing():
      task = await self.queue.take_next()
      return await self._execute(task)

  async def drain(self) -> int:
    """Execute tasks until the queue is empty, without waiting for new ones.

    Returns:
      The number of tasks taken from the queue.
    """
    taken = 0
    with self._writing():
      while True:
        task = self.queue.take_nowait()
        if task is None:
          return taken
        taken += 1
        await self._execute(task)

  async def run(self):
    """Execute tasks as they arrive, until cancelled or until the command channel fails."""
    logger.info("execution loop started at %s", self.arm_state.position)
    with self._writing():
      while True:
        task = await self.queue.take_next()
        await self._execute(task)
