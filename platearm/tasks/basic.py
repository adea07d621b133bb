"""The task types the arm can execute."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, List, TypeVar

from platearm.arm.channel import format_move_command
from platearm.arm.state import round_half_down
from platearm.resources.errors import ResolutionError
from platearm.tasks.task import Task
from platearm.tasks.visitor import TaskVisitor

if TYPE_CHECKING:
  from platearm.arm.channel import CommandChannel
  from platearm.arm.state import ArmState

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MoveToWell(Task):
  """Move the arm over a well.

  The well is looked up when the task is executed, not when it is created, so the same task can
  go somewhere else if the layout changed in between.
  """

  plate: str
  well: str

  async def execute(self, arm_state: ArmState, channel: CommandChannel) -> None:
    """Send the arm the difference between where it is and where the well is.

    The difference (current minus destination) is rounded to two decimals, ties toward zero,
    and the arm state is moved by that rounded difference. Over several moves the recorded
    position can therefore drift away from the nominal well centers.

    Raises:
      ResolutionError: if the well is not in the layout, or its location is too far away to be
        sent. Nothing is sent and the arm state is unchanged.
      CommandChannelError: if the command could not be sent. The arm state is unchanged.
    """
    destination = arm_state.resolver.resolve(self.plate, self.well)
    start = arm_state.position

    try:
      dx = round_half_down(start.x - destination.x)
      dy = round_half_down(start.y - destination.y)
    except ValueError as e:
      reason = f"location {destination} is out of range"
      raise ResolutionError(self.plate, self.well, reason) from e

    await channel.send(format_move_command(dx, dy))

    arm_state.set_location(start.x - float(dx), start.y - float(dy))

  def dispatch(self, visitor: TaskVisitor[T], *params: Any) -> T:
    return visitor.visit_move_to_well(self, *params)

  def update_from_text(self, text: str):
    """Retarget this move from text like `"PlateA, B3"`. Leaves the task unchanged if the text is
    not a plate and a well separated by a comma.

    Raises:
      ValueError: if the text is malformed.
    """
    halves = text.split(",")
    if len(halves) != 2 or not all(half.strip() for half in halves):
      raise ValueError(f"Expected '<plate>, <well>', got '{text}'")
    self.plate, self.well = (half.strip() for half in halves)


@dataclass
class NoOp(Task):
  """A task that does nothing."""

  async def execute(self, arm_state: ArmState, channel: CommandChannel) -> None:
    pass

  def dispatch(self, visitor: TaskVisitor[T], *params: Any) -> T:
    return visitor.visit_no_op(self, *params)


@dataclass
class Composite(Task):
  """An ordered list of tasks, executed one after the other.

  If a child fails, the children after it are not executed.
  """

  children: List[Task] = field(default_factory=list)

  def __post_init__(self):
    # the composite owns its children, callers keep no handle on the list
    self.children = list(self.children)

  def append(self, task: Task):
    self.children.append(task)

  def __len__(self) -> int:
    return len(self.children)

  def __iter__(self) -> Iterator[Task]:
    return iter(self.children)

  async def execute(self, arm_state: ArmState, channel: CommandChannel) -> None:
    for i, child in enumerate(self.children):
      logger.debug("executing child %d/%d: %s", i + 1, len(self.children), child)
      await child.execute(arm_state, channel)

  def dispatch(self, visitor: TaskVisitor[T], *params: Any) -> T:
    return visitor.visit_composite(self, *params)
