"""Reading the platearm config file.

The config file is the first `platearm.ini` or `platearm.json` found in the working directory or
one of its parents. Without one, the defaults of `Config` are used.
"""

from pathlib import Path
from typing import Optional, Union

from platearm.config.config import Config
from platearm.config.formats import FORMATS, read_config, write_config


def find_config_file(base_name: str, start: Optional[Union[str, Path]] = None) -> Optional[Path]:
  """Find `<base_name>.ini` or `<base_name>.json` in `start` (the working directory by default)
  or the closest parent directory that has one."""
  start_dir = Path(start) if start is not None else Path.cwd()
  for directory in (start_dir, *start_dir.parents):
    for extension in FORMATS:
      candidate = directory / f"{base_name}.{extension}"
      if candidate.exists():
        return candidate
  return None


def project_dir() -> Path:
  """The closest directory above the working directory that holds a `.git` directory, or the
  working directory itself."""
  cwd = Path.cwd()
  return next((d for d in cwd.parents if (d / ".git").exists()), cwd)


def load_config(base_name: str, create_default: bool = False,
                in_project_dir: bool = True) -> Config:
  """Load the config file named `base_name`.

  Args:
    base_name: The file name without extension.
    create_default: Write a default INI config file when none is found, and load that.
    in_project_dir: Create the default file in `project_dir()` rather than the working directory.
  """
  path = find_config_file(base_name)
  if path is None:
    if not create_default:
      return Config()
    path = (project_dir() if in_project_dir else Path.cwd()) / f"{base_name}.ini"
    write_config(path, Config())
  return read_config(path)
