"""Config file formats. A format turns a `Config` into text and back, and is picked by the file
extension when reading or writing a config file."""

import configparser
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Dict, Union

from platearm.config.config import Config


class ConfigFormat(ABC):
  extension: str

  @abstractmethod
  def load(self, r: IO[str]) -> Config:
    """Load a config from an open text stream."""

  @abstractmethod
  def dump(self, cfg: Config, w: IO[str]):
    """Write a config to an open text stream."""


class IniFormat(ConfigFormat):
  """One INI section per config section. Missing sections and keys take their default values,
  and `None` values are left out when saving."""

  extension = "ini"

  def load(self, r: IO[str]) -> Config:
    parser = configparser.ConfigParser()
    parser.read_file(r)
    return Config.from_dict({name: dict(parser[name]) for name in parser.sections()})

  def dump(self, cfg: Config, w: IO[str]):
    parser = configparser.ConfigParser()
    for name, section in cfg.as_dict.items():
      parser[name] = {key: str(value) for key, value in section.items() if value is not None}
    parser.write(w)


class JsonFormat(ConfigFormat):
  extension = "json"

  def load(self, r: IO[str]) -> Config:
    return Config.from_dict(json.load(r))

  def dump(self, cfg: Config, w: IO[str]):
    json.dump(cfg.as_dict, w, indent=2)


FORMATS: Dict[str, ConfigFormat] = {fmt.extension: fmt for fmt in (IniFormat(), JsonFormat())}


def format_for(path: Union[str, Path]) -> ConfigFormat:
  extension = Path(path).suffix.lstrip(".")
  try:
    return FORMATS[extension]
  except KeyError as e:
    raise ValueError(f"Unsupported config file '{path}', expected one of {list(FORMATS)}") from e


def read_config(path: Union[str, Path]) -> Config:
  with open(path, "r", encoding="utf-8") as f:
    return format_for(path).load(f)


def write_config(path: Union[str, Path], cfg: Config):
  with open(path, "w", encoding="utf-8") as f:
    format_for(path).dump(cfg, f)
