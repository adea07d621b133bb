from __future__ import annotations

import asyncio
import functools
import logging
import sys
from typing import Any, Awaitable, Callable, Optional, ParamSpec, TypeVar

from platearm.arm.channel import CommandChannel
from platearm.arm.execution import ExecutionLoop
from platearm.arm.state import ArmPosition, ArmState
from platearm.config.config import Config
from platearm.io.chatterbox import Chatterbox
from platearm.io.io import IOBase
from platearm.io.serial import Serial
from platearm.resources.coordinate import Coordinate
from platearm.resources.layout import LocationResolver
from platearm.server.ingestion import IngestionServer
from platearm.tasks.queue import TaskQueue
from platearm.tasks.task import Task
from platearm.tasks.visitor import TaskRenderer

if sys.version_info >= (3, 11):
  from typing import Self
else:
  from typing_extensions import Self

logger = logging.getLogger(__name__)

_P = ParamSpec("_P")
_R = TypeVar("_R", bound=Awaitable[Any])


def need_setup_finished(func: Callable[_P, _R]) -> Callable[_P, _R]:
  """Decorator for methods that require the arm to be set up.

  Raises:
    RuntimeError: If the arm is not set up.
  """

  @functools.wraps(func)
  async def wrapper(*args, **kwargs):
    self = args[0]
    assert isinstance(self, LiquidHandlingArm)
    if not self.setup_finished:
      raise RuntimeError("The setup has not finished. See `setup`.")
    return await func(*args, **kwargs)

  return wrapper  # type: ignore[return-value]


class LiquidHandlingArm:
  """Front end for a liquid handling arm.

  Owns the task queue, the arm state, the command channel, the execution loop and the ingestion
  server, and starts and stops them together. Tasks come in over the network or through
  `submit`, and are executed in the background in queue order.

  Example:
    >>> layout = PlateLayout({"PlateA": {"B3": Coordinate(12.35, 5.00)}})
    >>> async with LiquidHandlingArm(resolver=layout, io=Chatterbox(), port=0) as arm:
    ...   await arm.submit(MoveToWell("PlateA", "B3"))
  """

  def __init__(
    self,
    resolver: LocationResolver,
    io: IOBase,
    host: str = "127.0.0.1",
    port: int = 4040,
    max_connections: int = 16,
    queue_size: int = 0,
    line_ending: bytes = b"\n",
    start: Optional[Coordinate] = None,
  ):
    """
    Args:
      resolver: Resolves plate names and wells to locations when moves are executed.
      io: The connection to the arm controller.
      host: The interface the ingestion server listens on.
      port: The port the ingestion server listens on, 0 for any free port.
      max_connections: The number of network connections read at the same time.
      queue_size: The maximum number of waiting tasks, 0 for no limit.
      line_ending: Appended to every command sent to the controller.
      start: The logical position of the arm at setup. Defaults to the origin.
    """
    start = start or Coordinate.zero()
    self.queue = TaskQueue(maxsize=queue_size)
    self._arm_state = ArmState(resolver, x=start.x, y=start.y)
    self.channel = CommandChannel(io, line_ending=line_ending)
    self.execution_loop = ExecutionLoop(self.queue, self._arm_state, self.channel)
    self.server = IngestionServer(self.queue, host=host, port=port,
                                  max_connections=max_connections)
    self._loop_task: Optional[asyncio.Task] = None
    self._setup_finished = False

  @classmethod
  def from_config(
    cls,
    cfg: Config,
    resolver: LocationResolver,
    io: Optional[IOBase] = None,
  ) -> Self:
    """Create an arm from the `server` and `arm` sections of a config. Without an explicit `io`,
    commands go to the configured serial port, or to a `Chatterbox` if there is none."""
    if io is None:
      if cfg.arm.serial_port is not None:
        io = Serial(port=cfg.arm.serial_port, baudrate=cfg.arm.baudrate)
      else:
        io = Chatterbox()
    return cls(
      resolver=resolver,
      io=io,
      host=cfg.server.host,
      port=cfg.server.port,
      max_connections=cfg.server.max_connections,
      queue_size=cfg.server.queue_size,
      line_ending=cfg.arm.terminator,
    )

  @property
  def setup_finished(self) -> bool:
    return self._setup_finished

  @property
  def position(self) -> ArmPosition:
    """A snapshot of the arm's logical position."""
    return self._arm_state.position

  @property
  def port(self) -> int:
    return self.server.port

  async def setup(self):
    await self.channel.setup()
    await self.server.setup()
    self._loop_task = asyncio.create_task(self.execution_loop.run(), name="execution-loop")
    self._setup_finished = True

  @need_setup_finished
  async def stop(self):
    await self.server.stop()
    assert self._loop_task is not None
    if self._loop_task.done():
      if not self._loop_task.cancelled() and self._loop_task.exception() is not None:
        logger.info("execution loop had stopped: %r", self._loop_task.exception())
    else:
      self._loop_task.cancel()
      try:
        await self._loop_task
      except asyncio.CancelledError:
        pass
    self._loop_task = None
    await self.channel.stop()
    self._setup_finished = False

  @need_setup_finished
  async def submit(self, task: Task):
    """Queue a locally created task for execution."""
    await self.queue.append(task)

  @need_setup_finished
  async def wait_until_failed(self):
    """Wait until the execution loop stops, and raise the error that stopped it.

    Raises:
      CommandChannelError: if a command could not be sent to the controller.
    """
    assert self._loop_task is not None
    await asyncio.shield(self._loop_task)

  def draw_tasks(self, renderer: TaskRenderer, surface: Any, scale: float):
    """Let `renderer` draw every task known to the queue on `surface`, at `scale` pixels per
    centimeter."""
    self.queue.draw_tasks(renderer, surface, scale)

  async def __aenter__(self) -> Self:
    await self.setup()
    return self

  async def __aexit__(self, exc_type, exc_value, traceback):
    await self.stop()
