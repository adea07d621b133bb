"""Runs a liquid handling arm that takes its tasks from the network.

Configured through `platearm.ini` (see `platearm.config`), with these environment overrides:

  LAYOUT_FILE   JSON plate layout, as written by `PlateLayout.serialize` (default: layout.json)
  HOST, PORT    where to listen for task records
  SERIAL_PORT   the arm controller's serial port. Without one, commands are printed.
"""

import asyncio
import json
import logging
import os
from dataclasses import replace

from platearm import CONFIG, LOG_FORMAT
from platearm.arm.arm import LiquidHandlingArm
from platearm.arm.errors import CommandChannelError
from platearm.config.config import Config
from platearm.resources.layout import PlateLayout

logger = logging.getLogger(__name__)


def config_from_environment(cfg: Config) -> Config:
  server = replace(
    cfg.server,
    host=os.environ.get("HOST", cfg.server.host),
    port=int(os.environ.get("PORT", cfg.server.port)),
  )
  arm = replace(cfg.arm, serial_port=os.environ.get("SERIAL_PORT", cfg.arm.serial_port))
  return replace(cfg, server=server, arm=arm)


async def serve(arm: LiquidHandlingArm):
  async with arm:
    logger.info("arm ready, send tasks to port %d", arm.port)
    await arm.wait_until_failed()


def main():
  cfg = config_from_environment(CONFIG)
  logging.basicConfig(level=cfg.logging.level, format=LOG_FORMAT)

  layout_file = os.environ.get("LAYOUT_FILE", "layout.json")
  with open(layout_file, "r", encoding="utf-8") as f:
    layout = PlateLayout.deserialize(json.load(f))

  arm = LiquidHandlingArm.from_config(cfg, resolver=layout)
  try:
    asyncio.run(serve(arm))
  except CommandChannelError as e:
    logger.critical("stopped: %s (caused by %r)", e, e.__cause__)
    raise SystemExit(1) from e
  except KeyboardInterrupt:
    logger.info("interrupted, stopping")


if __name__ == "__main__":
  main()
