import unittest
from typing import Any, List

from platearm.arm.channel import CommandChannel
from platearm.arm.errors import CommandChannelError
from platearm.arm.state import ArmPosition, ArmState, round_half_down
from platearm.io import Chatterbox
from platearm.resources import Coordinate, PlateLayout, ResolutionError
from platearm.tasks import Composite, MoveToWell, NoOp, TaskVisitor


class BrokenIO(Chatterbox):
  async def write(self, data: bytes):
    raise OSError("device disconnected")


class TaskTestCase(unittest.IsolatedAsyncioTestCase):
  def setUp(self):
    self.layout = PlateLayout({
      "PlateA": {
        "B3": Coordinate(12.35, 5.00),
        "B4": Coordinate(10.125, 5.0),
        "B5": Coordinate(10.123, 5.0),
      },
    })
    self.arm_state = ArmState(self.layout, x=10.00, y=5.00)
    self.io = Chatterbox(echo=False)
    self.channel = CommandChannel(self.io)

  @property
  def commands(self) -> List[bytes]:
    return self.io.written


class MoveToWellTests(TaskTestCase):
  async def test_move(self):
    await MoveToWell("PlateA", "B3").execute(self.arm_state, self.channel)
    self.assertEqual(self.commands, [b"move(-2.35,0.00)\n"])
    self.assertEqual(self.arm_state.position, ArmPosition(12.35, 5.00))

  async def test_out_of_range_location(self):
    self.layout.assign_well("PlateA", "far", Coordinate(1e30, 5.0))
    with self.assertRaises(ResolutionError) as ctx:
      await MoveToWell("PlateA", "far").execute(self.arm_state, self.channel)
    self.assertIn("out of range", str(ctx.exception))
    self.assertEqual(self.commands, [])
    self.assertEqual(self.arm_state.position, ArmPosition(10.00, 5.00))

  async def test_command_is_rounded_difference(self):
    for x, y, dest in [(0, 0, Coordinate(1.005, -3.3333)), (7.77, -1.01, Coordinate(-2.5, 0.125)),
                       (100, 100, Coordinate(0.001, 99.995))]:
      with self.subTest(x=x, y=y, dest=dest):
        self.io.written.clear()
        layout = PlateLayout({"p": {"w": dest}})
        arm_state = ArmState(layout, x=x, y=y)
        start = arm_state.position
        await MoveToWell("p", "w").execute(arm_state, self.channel)
        dx = round_half_down(start.x - dest.x)
        dy = round_half_down(start.y - dest.y)
        self.assertEqual(self.commands, [f"move({dx:.2f},{dy:.2f})\n".encode()])

  async def test_drift(self):
    # 10.0 - 10.125 is exactly -0.125, which rounds toward zero to -0.12
    await MoveToWell("PlateA", "B4").execute(self.arm_state, self.channel)
    # 10.12 - 10.123 rounds to 0.00: the arm does not move at all
    await MoveToWell("PlateA", "B5").execute(self.arm_state, self.channel)

    self.assertEqual(self.commands, [b"move(-0.12,0.00)\n", b"move(0.00,0.00)\n"])
    self.assertEqual(self.arm_state.position, ArmPosition(10.12, 5.0))
    self.assertNotEqual(self.arm_state.x, 10.123)

  async def test_unknown_well(self):
    with self.assertRaises(ResolutionError):
      await MoveToWell("PlateA", "Z99").execute(self.arm_state, self.channel)
    self.assertEqual(self.commands, [])
    self.assertEqual(self.arm_state.position, ArmPosition(10, 5))

  async def test_channel_failure_keeps_state(self):
    with self.assertRaises(CommandChannelError):
      await MoveToWell("PlateA", "B3").execute(self.arm_state, CommandChannel(BrokenIO()))
    self.assertEqual(self.arm_state.position, ArmPosition(10, 5))

  async def test_late_binding(self):
    task = MoveToWell("PlateA", "B3")
    self.layout.assign_well("PlateA", "B3", Coordinate(11, 6))
    await task.execute(self.arm_state, self.channel)
    self.assertEqual(self.commands, [b"move(-1.00,-1.00)\n"])

  def test_update_from_text(self):
    task = MoveToWell("PlateA", "B3")
    task.update_from_text(" PlateB ,  C7 ")
    self.assertEqual(task, MoveToWell("PlateB", "C7"))

    for text in ["PlateB", "PlateB, C7, D8", "PlateB, ", ""]:
      with self.subTest(text=text):
        with self.assertRaises(ValueError):
          task.update_from_text(text)
        self.assertEqual(task, MoveToWell("PlateB", "C7"))

  def test_str(self):
    self.assertEqual(str(MoveToWell("PlateA", "B3")), "Move to: plate = PlateA, well = B3")


class NoOpTests(TaskTestCase):
  async def test_no_op_changes_nothing(self):
    before = self.arm_state.position
    await NoOp().execute(self.arm_state, self.channel)
    self.assertIs(self.arm_state.position, before)
    self.assertEqual(self.commands, [])

  def test_str(self):
    self.assertEqual(str(NoOp()), "Do nothing")


class CompositeTests(TaskTestCase):
  async def test_children_in_order(self):
    task = Composite([MoveToWell("PlateA", "B3"), NoOp(), MoveToWell("PlateA", "B4")])
    await task.execute(self.arm_state, self.channel)
    self.assertEqual(self.commands, [b"move(-2.35,0.00)\n", b"move(2.22,0.00)\n"])
    self.assertEqual(self.arm_state.position, ArmPosition(10.13, 5.0))

  async def test_failing_child_stops_siblings(self):
    task = Composite([
      MoveToWell("PlateA", "B3"),
      MoveToWell("PlateA", "nope"),
      MoveToWell("PlateA", "B4"),
    ])
    with self.assertRaises(ResolutionError):
      await task.execute(self.arm_state, self.channel)
    self.assertEqual(self.commands, [b"move(-2.35,0.00)\n"])
    self.assertEqual(self.arm_state.position, ArmPosition(12.35, 5.0))

  def test_owns_children(self):
    children = [NoOp()]
    task = Composite(children)
    children.append(NoOp())
    self.assertEqual(len(task), 1)
    task.append(MoveToWell("PlateA", "B3"))
    self.assertEqual(list(task), [NoOp(), MoveToWell("PlateA", "B3")])

  def test_str(self):
    self.assertEqual(str(Composite([NoOp(), NoOp()])), "Composite (2 tasks)")


class DispatchTests(unittest.TestCase):
  class Recorder(TaskVisitor[str]):
    def __init__(self):
      self.calls: List[Any] = []

    def visit_move_to_well(self, task, *params):
      self.calls.append(("move_to_well", task, params))
      return "move"

    def visit_no_op(self, task, *params):
      self.calls.append(("no_op", task, params))
      return "no_op"

    def visit_composite(self, task, *params):
      self.calls.append(("composite", task, params))
      return "+".join(child.dispatch(self, *params) for child in task)

  def test_dispatch_calls_matching_case(self):
    visitor = self.Recorder()
    move = MoveToWell("PlateA", "B3")
    self.assertEqual(move.dispatch(visitor, 1, "two"), "move")
    self.assertEqual(visitor.calls, [("move_to_well", move, (1, "two"))])

  def test_composite_dispatch_in_order(self):
    visitor = self.Recorder()
    task = Composite([NoOp(), MoveToWell("PlateA", "B3"), Composite([NoOp()])])
    self.assertEqual(task.dispatch(visitor), "no_op+move+no_op")
    self.assertEqual([call[0] for call in visitor.calls],
                     ["composite", "no_op", "move_to_well", "composite", "no_op"])

  def test_visitor_must_handle_every_task_type(self):
    class Incomplete(TaskVisitor[None]):
      def visit_move_to_well(self, task, *params):
        pass

      def visit_no_op(self, task, *params):
        pass

    with self.assertRaises(TypeError):
      Incomplete()  # type: ignore[abstract]
