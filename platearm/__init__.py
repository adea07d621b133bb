import datetime
import logging
from pathlib import Path
from typing import Optional, Union

from platearm.__version__ import __version__
from platearm.config import Config, load_config

CONFIG = load_config("platearm")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def project_root() -> Path:
  """The directory that holds the platearm package."""
  return Path(__file__).resolve().parent.parent


def setup_logger(log_dir: Optional[Union[Path, str]], level: int):
  """Set the level of the `platearm` logger, and log to `<log_dir>/platearm-YYYYMMDD.log`.

  Handlers installed by an earlier call are closed and removed. With `log_dir=None`, nothing is
  written to file.
  """
  logger = logging.getLogger("platearm")
  logger.setLevel(level)
  for handler in list(logger.handlers):
    logger.removeHandler(handler)
    handler.close()

  if log_dir is None:
    return
  log_dir = Path(log_dir)
  log_dir.mkdir(parents=True, exist_ok=True)
  today = datetime.date.today().strftime("%Y%m%d")
  handler = logging.FileHandler(log_dir / f"platearm-{today}.log")
  handler.setFormatter(logging.Formatter(LOG_FORMAT))
  logger.addHandler(handler)


def configure(cfg: Config):
  setup_logger(cfg.logging.log_dir, cfg.logging.level)


configure(CONFIG)
