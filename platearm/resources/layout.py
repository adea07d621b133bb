import logging
import math
from abc import ABC, abstractmethod
from string import ascii_uppercase as LETTERS
from typing import Dict, List, Optional

from platearm.resources.coordinate import Coordinate
from platearm.resources.errors import ResolutionError

logger = logging.getLogger(__name__)


class LocationResolver(ABC):
  """Maps a plate name and a well identifier to an absolute coordinate."""

  @abstractmethod
  def resolve(self, plate: str, well: str) -> Coordinate:
    """Return the absolute location of `well` on `plate`.

    Raises:
      ResolutionError: if the plate or the well is unknown.
    """


class PlateLayout(LocationResolver):
  """An in-memory layout of plates on the deck.

  The layout may change at any time; moves look their well up when they are executed, so a move
  created before a change goes to the new location.
  """

  def __init__(self, plates: Optional[Dict[str, Dict[str, Coordinate]]] = None):
    self._plates: Dict[str, Dict[str, Coordinate]] = {}
    for plate, wells in (plates or {}).items():
      for well, location in wells.items():
        self.assign_well(plate, well, location)

  @property
  def plate_names(self) -> List[str]:
    return list(self._plates)

  def assign_well(self, plate: str, well: str, location: Coordinate):
    """Set (or replace) the location of one well. Creates the plate if it does not exist yet.

    Raises:
      ValueError: if a coordinate is not a finite number.
    """
    if not (math.isfinite(location.x) and math.isfinite(location.y)):
      raise ValueError(f"Location of well '{well}' on plate '{plate}' is not finite: {location}")
    self._plates.setdefault(plate, {})[well] = location

  def assign_grid(
    self,
    plate: str,
    origin: Coordinate,
    num_rows: int,
    num_columns: int,
    dx: float,
    dy: float,
  ):
    """Assign an equally spaced grid of wells, named A1, A2, ... with A1 at `origin`.

    Rows are lettered and advance by `dy`; columns are numbered from 1 and advance by `dx`.
    """
    if not 0 < num_rows <= len(LETTERS):
      raise ValueError(f"num_rows must be between 1 and {len(LETTERS)}, got {num_rows}")
    for row in range(num_rows):
      for column in range(num_columns):
        location = Coordinate(x=origin.x + column * dx, y=origin.y + row * dy)
        self.assign_well(plate, f"{LETTERS[row]}{column + 1}", location)

  def remove_plate(self, plate: str):
    if plate not in self._plates:
      raise ValueError(f"Plate '{plate}' is not in the layout")
    del self._plates[plate]

  def resolve(self, plate: str, well: str) -> Coordinate:
    try:
      wells = self._plates[plate]
    except KeyError as e:
      raise ResolutionError(plate, well, "unknown plate") from e
    try:
      return wells[well]
    except KeyError as e:
      raise ResolutionError(plate, well, "unknown well") from e

  def serialize(self) -> dict:
    return {
      "type": self.__class__.__name__,
      "plates": {
        plate: {well: location.serialize() for well, location in wells.items()}
        for plate, wells in self._plates.items()
      },
    }

  @classmethod
  def deserialize(cls, data: dict) -> "PlateLayout":
    layout = cls()
    for plate, wells in data["plates"].items():
      for well, location in wells.items():
        layout.assign_well(plate, well, Coordinate(x=location["x"], y=location["y"]))
    logger.debug("loaded layout with plates %s", layout.plate_names)
    return layout
