import logging
from typing import List

from platearm.io.io import LOG_LEVEL_IO, IOBase

logger = logging.getLogger(__name__)


class Chatterbox(IOBase):
  """Device-free IO that prints everything written to it. Useful for dry runs."""

  def __init__(self, echo: bool = True):
    self.echo = echo
    self.written: List[bytes] = []

  async def setup(self):
    self.written = []

  async def stop(self):
    pass

  async def write(self, data: bytes):
    self.written.append(data)
    logger.log(LOG_LEVEL_IO, "[chatterbox] write %s", data)
    if self.echo:
      print(data.decode("ascii", errors="replace"), end="", flush=True)

  def serialize(self) -> dict:
    return {**super().serialize(), "echo": self.echo}
