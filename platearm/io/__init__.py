from .chatterbox import Chatterbox
from .io import LOG_LEVEL_IO, IOBase
from .serial import Serial
