from .coordinate import Coordinate
from .errors import ResolutionError
from .layout import LocationResolver, PlateLayout
