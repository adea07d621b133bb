from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Coordinate:
  """An absolute position on the deck, in centimeters.

  Values are kept exactly as given. Rounding happens when a move is computed, not here.
  """

  x: float = 0
  y: float = 0

  @staticmethod
  def zero() -> Coordinate:
    return Coordinate(0, 0)

  def __sub__(self, other: Coordinate) -> Coordinate:
    return Coordinate(x=self.x - other.x, y=self.y - other.y)

  def __iter__(self):
    return iter((self.x, self.y))

  def __str__(self) -> str:
    return f"Coordinate({self.x:.2f}, {self.y:.2f})"

  def serialize(self) -> dict:
    return {"x": self.x, "y": self.y}
