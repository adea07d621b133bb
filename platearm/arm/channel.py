import asyncio
import logging
from decimal import Decimal

from platearm.arm.errors import CommandChannelError
from platearm.io.io import IOBase

logger = logging.getLogger(__name__)


def format_move_command(dx: Decimal, dy: Decimal) -> str:
  """Format a relative move for the controller, e.g. `move(-2.35,0.00)`."""
  return f"move({dx:.2f},{dy:.2f})"


class CommandChannel:
  """Writes commands to the arm controller, one complete line at a time.

  Each command is encoded and terminated before it is written, and written with a single call
  under a lock, so two commands are never interleaved and every write is flushed before the next
  one starts.
  """

  def __init__(self, io: IOBase, line_ending: bytes = b"\n"):
    self.io = io
    self.line_ending = line_ending
    self._write_lock = asyncio.Lock()

  async def setup(self):
    await self.io.setup()

  async def stop(self):
    await self.io.stop()

  async def send(self, command: str):
    """Send one command.

    Raises:
      CommandChannelError: if the device could not be written to.
    """
    data = command.encode("ascii") + self.line_ending
    async with self._write_lock:
      try:
        await self.io.write(data)
      except (OSError, asyncio.TimeoutError) as e:
        logger.error("failed to send %r: %r", command, e)
        raise CommandChannelError(f"Could not send '{command}' to the arm controller") from e
    logger.debug("sent %s", command)
