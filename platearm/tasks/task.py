from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TypeVar

from platearm.tasks.visitor import TaskDescriber, TaskVisitor

if TYPE_CHECKING:
  from platearm.arm.channel import CommandChannel
  from platearm.arm.state import ArmState

T = TypeVar("T")


class Task(ABC):
  """A unit of work for the arm.

  The set of tasks is closed: `MoveToWell`, `NoOp` and `Composite`. Operations over tasks other
  than execution (serialization, descriptions, drawing) are written as a `TaskVisitor`, which has
  one case per task type.
  """

  @abstractmethod
  async def execute(self, arm_state: ArmState, channel: CommandChannel) -> None:
    """Apply this task to `arm_state`, sending any commands through `channel`."""

  @abstractmethod
  def dispatch(self, visitor: TaskVisitor[T], *params: Any) -> T:
    """Call the case of `visitor` for this type of task with `self` and `params`, and return its
    result."""

  def __str__(self) -> str:
    return self.dispatch(TaskDescriber())
