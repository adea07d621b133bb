from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
  from platearm.tasks.basic import Composite, MoveToWell, NoOp

T = TypeVar("T")


class TaskVisitor(Generic[T], ABC):
  """An operation over tasks, with one case per task type.

  Every case is abstract, so a visitor that does not handle all task types cannot be
  instantiated. Adding a task type means adding a case here and to every visitor.
  """

  @abstractmethod
  def visit_move_to_well(self, task: MoveToWell, *params: Any) -> T:
    pass

  @abstractmethod
  def visit_no_op(self, task: NoOp, *params: Any) -> T:
    pass

  @abstractmethod
  def visit_composite(self, task: Composite, *params: Any) -> T:
    pass


class TaskDescriber(TaskVisitor[str]):
  """Describes a task in one line, for task lists and logs."""

  def visit_move_to_well(self, task: MoveToWell, *params: Any) -> str:
    return f"Move to: plate = {task.plate}, well = {task.well}"

  def visit_no_op(self, task: NoOp, *params: Any) -> str:
    return "Do nothing"

  def visit_composite(self, task: Composite, *params: Any) -> str:
    return f"Composite ({len(task)} tasks)"


class TaskRenderer(TaskVisitor[None]):
  """Base class for views that draw tasks.

  Cases are called with `(surface, scale)`: the view's drawing surface and the centimeter to pixel
  scale factor. Composite tasks draw their children in order; views implement the leaf cases.
  """

  def visit_composite(self, task: Composite, *params: Any) -> None:
    for child in task:
      child.dispatch(self, *params)
