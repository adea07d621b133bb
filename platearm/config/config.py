import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

LOG_FROM_STRING = {
  "DEBUG": logging.DEBUG,
  "INFO": logging.INFO,
  "WARNING": logging.WARNING,
  "ERROR": logging.ERROR,
  "CRITICAL": logging.CRITICAL,
}

LOG_TO_STRING = {v: k for k, v in LOG_FROM_STRING.items()}

LINE_ENDINGS = {
  "LF": b"\n",
  "CRLF": b"\r\n",
  "CR": b"\r",
  "NONE": b"",
}


@dataclass
class Config:
  """The configuration object for platearm."""

  @dataclass
  class Logging:
    """The logging configuration."""

    level: int = logging.INFO
    log_dir: Optional[Path] = None

  @dataclass
  class Server:
    """Where the ingestion server listens and how much it accepts at once."""

    host: str = "127.0.0.1"
    port: int = 4040
    max_connections: int = 16
    queue_size: int = 0  # 0 means unbounded

  @dataclass
  class Arm:
    """The command channel to the arm controller."""

    line_ending: str = "LF"
    serial_port: Optional[str] = None
    baudrate: int = 9600

    def __post_init__(self):
      if self.line_ending not in LINE_ENDINGS:
        raise ValueError(
          f"Unknown line ending '{self.line_ending}', expected one of {list(LINE_ENDINGS)}"
        )

    @property
    def terminator(self) -> bytes:
      return LINE_ENDINGS[self.line_ending]

  logging: Logging = field(default_factory=Logging)
  server: Server = field(default_factory=Server)
  arm: Arm = field(default_factory=Arm)

  @classmethod
  def from_dict(cls, d: dict) -> "Config":
    log_d = d.get("logging", {})
    server_d = d.get("server", {})
    arm_d = d.get("arm", {})
    return cls(
      logging=cls.Logging(
        level=LOG_FROM_STRING[log_d.get("level", "INFO")],
        log_dir=Path(log_d["log_dir"]) if log_d.get("log_dir") is not None else None,
      ),
      server=cls.Server(
        host=server_d.get("host", "127.0.0.1"),
        port=int(server_d.get("port", 4040)),
        max_connections=int(server_d.get("max_connections", 16)),
        queue_size=int(server_d.get("queue_size", 0)),
      ),
      arm=cls.Arm(
        line_ending=arm_d.get("line_ending", "LF"),
        serial_port=arm_d.get("serial_port"),
        baudrate=int(arm_d.get("baudrate", 9600)),
      ),
    )

  @property
  def as_dict(self) -> dict:
    return {
      "logging": {
        "level": LOG_TO_STRING[self.logging.level],
        "log_dir": str(self.logging.log_dir) if self.logging.log_dir is not None else None,
      },
      "server": {
        "host": self.server.host,
        "port": self.server.port,
        "max_connections": self.server.max_connections,
        "queue_size": self.server.queue_size,
      },
      "arm": {
        "line_ending": self.arm.line_ending,
        "serial_port": self.arm.serial_port,
        "baudrate": self.arm.baudrate,
      },
    }
