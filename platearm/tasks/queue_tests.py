import asyncio
import unittest
from typing import Any, List

from platearm.tasks import Composite, MoveToWell, NoOp, QueueFullError, TaskQueue, TaskRenderer


class RecordingRenderer(TaskRenderer):
  def __init__(self):
    self.drawn: List[Any] = []

  def visit_move_to_well(self, task, *params):
    self.drawn.append((task.well, params))

  def visit_no_op(self, task, *params):
    self.drawn.append(("no_op", params))


class TaskQueueTests(unittest.IsolatedAsyncioTestCase):
  async def test_fifo(self):
    queue = TaskQueue()
    tasks = [MoveToWell("PlateA", f"A{i}") for i in range(5)]
    for task in tasks:
      await queue.append(task)
    self.assertEqual(queue.qsize(), 5)
    self.assertEqual([await queue.take_next() for _ in range(5)], tasks)
    self.assertTrue(queue.empty())
    self.assertIsNone(queue.take_nowait())

  async def test_take_next_waits(self):
    queue = TaskQueue()
    taker = asyncio.create_task(queue.take_next())
    await asyncio.sleep(0.01)
    self.assertFalse(taker.done())
    await queue.append(NoOp())
    self.assertEqual(await asyncio.wait_for(taker, timeout=1), NoOp())

  async def test_bounded_append_nowait(self):
    queue = TaskQueue(maxsize=1)
    queue.append_nowait(NoOp())
    with self.assertRaises(QueueFullError):
      queue.append_nowait(NoOp())
    self.assertEqual(len(queue.tasks), 1)

  async def test_bounded_append_waits_for_room(self):
    queue = TaskQueue(maxsize=1)
    await queue.append(MoveToWell("PlateA", "A1"))
    producer = asyncio.create_task(queue.append(MoveToWell("PlateA", "A2")))
    await asyncio.sleep(0.01)
    self.assertFalse(producer.done())

    self.assertEqual(await queue.take_next(), MoveToWell("PlateA", "A1"))
    await asyncio.wait_for(producer, timeout=1)
    self.assertEqual(await queue.take_next(), MoveToWell("PlateA", "A2"))

  async def test_log_keeps_taken_tasks(self):
    queue = TaskQueue()
    await queue.append(NoOp())
    await queue.append(MoveToWell("PlateA", "A1"))
    await queue.take_next()
    self.assertEqual(queue.tasks, (NoOp(), MoveToWell("PlateA", "A1")))
    queue.clear_log()
    self.assertEqual(queue.tasks, ())
    self.assertEqual(queue.qsize(), 1)

  async def test_draw_tasks(self):
    queue = TaskQueue()
    await queue.append(Composite([MoveToWell("PlateA", "A1"), NoOp()]))
    await queue.append(MoveToWell("PlateA", "A2"))
    renderer = RecordingRenderer()
    surface = object()
    queue.draw_tasks(renderer, surface, 2.5)
    self.assertEqual(renderer.drawn, [
      ("A1", (surface, 2.5)),
      ("no_op", (surface, 2.5)),
      ("A2", (surface, 2.5)),
    ])
