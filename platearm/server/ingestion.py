import asyncio
import enum
import logging
from typing import Dict, Optional, Set

from platearm.tasks.errors import DeserializationError
from platearm.tasks.queue import TaskQueue
from platearm.tasks.wire import decode_record

logger = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
  LISTENING = "listening"
  CONNECTED = "connected"
  READING = "reading"
  CLOSED = "closed"


class IngestionServer:
  """Accepts task records over TCP and appends the tasks to a `TaskQueue`.

  Each connection is handled by its own coroutine, which reads one record per line and appends
  the task before reading the next, so tasks from one connection are queued in the order they
  were sent. A connection that sends a malformed record or fails is closed. Other connections and
  the listening socket are not affected.

  At most `max_connections` connections are read at the same time. Connections accepted beyond
  that wait until one of the others closes.
  """

  def __init__(
    self,
    queue: TaskQueue,
    host: str = "127.0.0.1",
    port: int = 4040,
    max_connections: int = 16,
    read_limit: int = 2**16,
  ):
    """
    Args:
      queue: The queue to append received tasks to.
      host: The interface to listen on.
      port: The port to listen on. 0 picks a free port, see `port` after `setup`.
      max_connections: The number of connections read at the same time.
      read_limit: The maximum length of one record, in bytes. Longer records are malformed.
    """
    if max_connections < 1:
      raise ValueError("max_connections must be at least 1")

    self._queue = queue
    self.host = host
    self._port = port
    self.max_connections = max_connections
    self.read_limit = read_limit

    self._server: Optional[asyncio.AbstractServer] = None
    self._slots: Optional[asyncio.Semaphore] = None
    self._handlers: Set[asyncio.Task] = set()
    self._connections: Dict[str, ConnectionState] = {}
    self._closing = False
    self.num_accepted = 0

  @property
  def port(self) -> int:
    """The port the server listens on."""
    return self._port

  @property
  def state(self) -> ConnectionState:
    return ConnectionState.LISTENING if self._server is not None else ConnectionState.CLOSED

  @property
  def connections(self) -> Dict[str, ConnectionState]:
    """The state of every open connection, by peer address."""
    return dict(self._connections)

  async def setup(self):
    self._closing = False
    self._slots = asyncio.Semaphore(self.max_connections)
    self._server = await asyncio.start_server(
      self._handle_connection, self.host, self._port, limit=self.read_limit)
    self._port = self._server.sockets[0].getsockname()[1]
    logger.info("listening for tasks on %s:%d", self.host, self._port)

  async def stop(self):
    if self._server is None:
      return
    # handlers that have not started yet see this and close their connection right away
    self._closing = True
    self._server.close()
    handlers = list(self._handlers)
    for handler in handlers:
      handler.cancel()
    await asyncio.gather(*handlers, return_exceptions=True)
    await self._server.wait_closed()
    self._server = None
    logger.info("stopped listening on %s:%d", self.host, self._port)

  async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
    peer = writer.get_extra_info("peername")
    name = f"{peer[0]}:{peer[1]}" if peer else f"connection-{self.num_accepted}"
    self.num_accepted += 1
    handler = asyncio.current_task()
    assert handler is not None
    self._handlers.add(handler)

    assert self._slots is not None, "forgot to call setup?"
    try:
      if self._closing:
        logger.info("closing connection from %s, the server is stopping", name)
        return
      self._connections[name] = ConnectionState.CONNECTED
      async with self._slots:
        logger.info("accepted connection from %s", name)
        num_tasks = await self._read_tasks(name, reader)
        logger.info("%s closed the connection after %d tasks", name, num_tasks)
    except DeserializationError as e:
      logger.warning("closing connection from %s, bad record: %s", name, e)
    except OSError as e:  # ConnectionError, resets, timeouts
      logger.warning("connection from %s failed: %r", name, e)
    finally:
      self._handlers.discard(handler)
      self._connections.pop(name, None)
      writer.close()
      try:
        await writer.wait_closed()
      except OSError as e:
        logger.debug("error while closing connection from %s: %r", name, e)

  async def _read_tasks(self, name: str, reader: asyncio.StreamReader) -> int:
    num_tasks = 0
    while True:
      self._connections[name] = ConnectionState.READING
      try:
        line = await reader.readline()
      except ValueError as e:  # line longer than the stream limit
        raise DeserializationError(f"Record longer than {self.read_limit} bytes") from e
      if line == b"":  # end of stream
        return num_tasks
      if line.strip() == b"":
        continue
      task = decode_record(line)
      await self._queue.append(task)
      num_tasks += 1
      logger.debug("received %s from %s", task, name)
