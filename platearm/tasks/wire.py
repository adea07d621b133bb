"""Task records as sent to the ingestion server.

Records are JSON objects, one per line. Every record carries a type tag and a format version,
plus the fields of its task type:

  {"type": "move_to_well", "version": 1, "plate": "PlateA", "well": "B3"}
  {"type": "no_op", "version": 1}
  {"type": "composite", "version": 1, "children": [...]}

Only these tags are accepted, and a record must have exactly the fields of its type.
"""

import json
from typing import Any, Callable, Dict, List, TypeAlias, Union

from platearm.__version__ import WIRE_FORMAT_VERSION
from platearm.tasks.basic import Composite, MoveToWell, NoOp
from platearm.tasks.errors import DeserializationError
from platearm.tasks.task import Task
from platearm.tasks.visitor import TaskVisitor

JSON: TypeAlias = Union[Dict[str, "JSON"], List["JSON"], str, int, float, bool, None]

# composites nested deeper than this are rejected
MAX_DEPTH = 32


class TaskSerializer(TaskVisitor[Dict[str, JSON]]):
  """Turns a task into its wire record."""

  def visit_move_to_well(self, task: MoveToWell, *params: Any) -> Dict[str, JSON]:
    return {"type": "move_to_well", "version": WIRE_FORMAT_VERSION,
            "plate": task.plate, "well": task.well}

  def visit_no_op(self, task: NoOp, *params: Any) -> Dict[str, JSON]:
    return {"type": "no_op", "version": WIRE_FORMAT_VERSION}

  def visit_composite(self, task: Composite, *params: Any) -> Dict[str, JSON]:
    return {"type": "composite", "version": WIRE_FORMAT_VERSION,
            "children": [child.dispatch(self) for child in task]}


def serialize_task(task: Task) -> Dict[str, JSON]:
  return task.dispatch(TaskSerializer())


def _check_fields(data: Dict[str, Any], fields: Dict[str, type]):
  expected = {"type", "version", *fields}
  if set(data) != expected:
    missing = sorted(expected - set(data))
    unexpected = sorted(set(data) - expected)
    raise DeserializationError(
      f"Record of type '{data['type']}' has missing fields {missing} "
      f"and unexpected fields {unexpected}"
    )
  for name, type_ in fields.items():
    if not isinstance(data[name], type_):
      raise DeserializationError(
        f"Field '{name}' of '{data['type']}' must be {type_.__name__}, "
        f"got {type(data[name]).__name__}"
      )


def _move_to_well(data: Dict[str, Any], depth: int) -> Task:
  _check_fields(data, {"plate": str, "well": str})
  return MoveToWell(plate=data["plate"], well=data["well"])


def _no_op(data: Dict[str, Any], depth: int) -> Task:
  _check_fields(data, {})
  return NoOp()


def _composite(data: Dict[str, Any], depth: int) -> Task:
  _check_fields(data, {"children": list})
  if depth >= MAX_DEPTH:
    raise DeserializationError(f"Composite nested deeper than {MAX_DEPTH} levels")
  return Composite([_deserialize(child, depth + 1) for child in data["children"]])


_DECODERS: Dict[str, Callable[[Dict[str, Any], int], Task]] = {
  "move_to_well": _move_to_well,
  "no_op": _no_op,
  "composite": _composite,
}


def _deserialize(data: Any, depth: int) -> Task:
  if not isinstance(data, dict):
    raise DeserializationError(f"Record must be a JSON object, got {type(data).__name__}")
  tag = data.get("type")
  if not isinstance(tag, str) or tag not in _DECODERS:
    raise DeserializationError(f"Unknown record type: {tag!r}")
  version = data.get("version")
  # bool is an int subclass, `true` is not a version
  if isinstance(version, bool) or version != WIRE_FORMAT_VERSION:
    raise DeserializationError(
      f"Unsupported version {version!r} for '{tag}', expected {WIRE_FORMAT_VERSION}"
    )
  return _DECODERS[tag](data, depth)


def deserialize_task(data: JSON) -> Task:
  """Rebuild a task from a decoded wire record.

  Raises:
    DeserializationError: if the record has an unknown tag, an unsupported version, or wrong
      fields.
  """
  return _deserialize(data, depth=0)


def encode_record(task: Task) -> bytes:
  """Encode a task as one newline-terminated record."""
  return json.dumps(serialize_task(task)).encode("utf-8") + b"\n"


def decode_record(line: bytes) -> Task:
  """Decode one record line (with or without its newline).

  Raises:
    DeserializationError: if the line is not a valid record.
  """
  try:
    data = json.loads(line.decode("utf-8"))
  except (UnicodeDecodeError, ValueError, RecursionError) as e:
    raise DeserializationError(f"Record is not valid JSON: {e}") from e
  return deserialize_task(data)
