from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import ROUND_HALF_DOWN, Decimal, InvalidOperation
from typing import Optional

from platearm.resources.layout import LocationResolver

_TWO_PLACES = Decimal("0.01")


def round_half_down(value: float) -> Decimal:
  """Round to two decimals, ties toward zero.

  Rounds the exact binary value of `value`, so only floats that really lie halfway (like 0.125)
  count as ties. Negative zero is returned as zero.

  Raises:
    ValueError: if `value` is not finite, or too large to be written with two decimals.

  Examples:
    >>> round_half_down(0.375)
    Decimal('0.37')
    >>> round_half_down(-0.125)
    Decimal('-0.12')
  """
  try:
    rounded = Decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_DOWN)
  except InvalidOperation as e:
    raise ValueError(f"{value!r} cannot be rounded to two decimals") from e
  if not rounded.is_finite():
    raise ValueError(f"{value!r} is not a finite number")
  if rounded.is_zero():
    rounded = rounded.copy_abs()
  return rounded


@dataclass(frozen=True)
class ArmPosition:
  """An immutable snapshot of the arm's logical position, in centimeters."""

  x: float
  y: float

  def __str__(self) -> str:
    return f"({self.x:.2f}, {self.y:.2f})"


class ArmState:
  """The logical position of the arm, and the layout used to resolve wells against it.

  Coordinates are always stored rounded to two decimals. Readers get an `ArmPosition` snapshot.
  Once a writer has claimed the state (see `claim`), only that asyncio task may move it.
  """

  def __init__(self, resolver: LocationResolver, x: float = 0, y: float = 0):
    self.resolver = resolver
    self._position = ArmPosition(float(round_half_down(x)), float(round_half_down(y)))
    self._writer: Optional[asyncio.Task] = None

  @property
  def position(self) -> ArmPosition:
    return self._position

  @property
  def x(self) -> float:
    return self._position.x

  @property
  def y(self) -> float:
    return self._position.y

  def claim(self):
    """Make the current asyncio task the only one allowed to move the arm."""
    current = asyncio.current_task()
    if self._writer is not None and not self._writer.done() and self._writer is not current:
      raise RuntimeError(f"Arm state is already claimed by {self._writer.get_name()}")
    self._writer = current

  def release(self):
    if self._writer is asyncio.current_task():
      self._writer = None

  def set_location(self, x: float, y: float):
    """Move the logical position, rounding both values to two decimals (ties toward zero)."""
    if self._writer is not None:
      try:
        current = asyncio.current_task()
      except RuntimeError:
        current = None
      if current is not self._writer:
        raise RuntimeError("Arm state can only be changed by the task that claimed it")
    # single assignment: readers see either the old or the new position, never a mix
    self._position = ArmPosition(float(round_half_down(x)), float(round_half_down(y)))

  def __repr__(self) -> str:
    return f"ArmState(x={self.x:.2f}, y={self.y:.2f})"
