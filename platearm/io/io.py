import inspect
import logging
from abc import ABC, abstractmethod
from typing import Iterator, Type

LOG_LEVEL_IO = 5
logging.addLevelName(LOG_LEVEL_IO, "IO")


class IOBase(ABC):
  """A byte-oriented device connection. Commands to the arm controller are written through one of
  these."""

  @abstractmethod
  async def setup(self):
    pass

  @abstractmethod
  async def stop(self):
    pass

  @abstractmethod
  async def write(self, data: bytes):
    """Write `data` to the device. Returns once the bytes have been handed to the device."""

  def serialize(self) -> dict:
    return {"type": self.__class__.__name__}

  @classmethod
  def _subclasses(cls) -> Iterator[Type["IOBase"]]:
    for subclass in cls.__subclasses__():
      yield subclass
      yield from subclass._subclasses()

  @classmethod
  def deserialize(cls, data: dict) -> "IOBase":
    """Create a device from the dict written by `serialize`. The `type` key names the class."""
    data = data.copy()
    class_name = data.pop("type")
    for subclass in cls._subclasses():
      if subclass.__name__ != class_name:
        continue
      if inspect.isabstract(subclass):
        raise ValueError(f"'{class_name}' is abstract")
      return subclass(**data)
    raise ValueError(f"Unknown IO type '{class_name}'")
