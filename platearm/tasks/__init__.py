from .basic import Composite, MoveToWell, NoOp
from .errors import DeserializationError, QueueFullError
from .queue import TaskQueue
from .task import Task
from .visitor import TaskDescriber, TaskRenderer, TaskVisitor
from .wire import (
  TaskSerializer,
  decode_record,
  deserialize_task,
  encode_record,
  serialize_task,
)
