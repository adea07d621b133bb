class DeserializationError(Exception):
  """ Raised when a task record is malformed or has an unknown type tag. """


class QueueFullError(Exception):
  """ Raised when a task is appended without waiting to a bounded queue that is full. """
