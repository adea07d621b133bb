import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

try:
  import serial

  HAS_SERIAL = True
except ImportError:
  HAS_SERIAL = False

from platearm.io.io import LOG_LEVEL_IO, IOBase

logger = logging.getLogger(__name__)


class Serial(IOBase):
  """The arm controller's serial command port.

  `port` is a device name such as `/dev/ttyUSB0` or `COM3`, or any pyserial URL (`loop://` echoes
  back what is written, which is enough to run without hardware). pyserial blocks, so the port is
  only touched from one worker thread, which also keeps writes in the order they were made.
  """

  def __init__(self, port: str, baudrate: int = 9600, write_timeout: Optional[float] = 1):
    self._port = port
    self.baudrate = baudrate
    self.write_timeout = write_timeout
    self._conn: Optional["serial.SerialBase"] = None
    self._worker: Optional[ThreadPoolExecutor] = None

  @property
  def port(self) -> str:
    return self._port

  async def _run(self, func, *args):
    assert self._worker is not None, "forgot to call setup?"
    return await asyncio.get_running_loop().run_in_executor(self._worker, func, *args)

  async def setup(self):
    if not HAS_SERIAL:
      raise RuntimeError("pyserial is not installed. Install platearm[serial].")
    self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"serial-{self._port}")
    try:
      self._conn = await self._run(
        lambda: serial.serial_for_url(
          self._port, baudrate=self.baudrate, write_timeout=self.write_timeout)
      )
    except serial.SerialException:
      logger.error("could not open %s, is another process using it?", self._port)
      self._worker.shutdown(wait=True)
      self._worker = None
      raise
    logger.info("opened %s at %d baud", self._port, self.baudrate)

  async def stop(self):
    if self._conn is not None:
      await self._run(self._conn.close)
      self._conn = None
    if self._worker is not None:
      self._worker.shutdown(wait=True)
      self._worker = None

  async def write(self, data: bytes):
    conn = self._conn
    assert conn is not None, "forgot to call setup?"

    def _write():
      # flush blocks until the bytes are out, so one command is on the wire before the next
      conn.write(data)
      conn.flush()

    await self._run(_write)
    logger.log(LOG_LEVEL_IO, "[%s] write %s", self._port, data)

  def serialize(self) -> dict:
    return {
      **super().serialize(),
      "port": self._port,
      "baudrate": self.baudrate,
      "write_timeout": self.write_timeout,
    }
