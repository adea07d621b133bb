import asyncio
from typing import Callable


async def wait_until(predicate: Callable[[], bool], timeout: float = 5, interval: float = 0.01):
  """Poll `predicate` until it is true.

  Raises:
    asyncio.TimeoutError: if it is still false after `timeout` seconds.
  """

  async def _poll():
    while not predicate():
      await asyncio.sleep(interval)

  await asyncio.wait_for(_poll(), timeout=timeout)
