import asyncio
import dataclasses
import unittest
from decimal import Decimal

from platearm.arm.state import ArmPosition, ArmState, round_half_down
from platearm.resources import PlateLayout


class RoundHalfDownTests(unittest.TestCase):
  def test_ties_round_toward_zero(self):
    # 0.125 and 0.375 are exact binary fractions, so these are real ties
    self.assertEqual(round_half_down(0.125), Decimal("0.12"))
    self.assertEqual(round_half_down(-0.125), Decimal("-0.12"))
    self.assertEqual(round_half_down(0.375), Decimal("0.37"))  # half-even would give 0.38
    self.assertEqual(round_half_down(-0.375), Decimal("-0.37"))
    self.assertEqual(round_half_down(10.625), Decimal("10.62"))

  def test_not_a_tie(self):
    self.assertEqual(round_half_down(10.0 - 12.35), Decimal("-2.35"))
    self.assertEqual(round_half_down(0.126), Decimal("0.13"))
    self.assertEqual(round_half_down(-0.124), Decimal("-0.12"))

  def test_always_two_places(self):
    self.assertEqual(str(round_half_down(3)), "3.00")
    self.assertEqual(str(round_half_down(0.5)), "0.50")

  def test_no_negative_zero(self):
    rounded = round_half_down(-0.001)
    self.assertEqual(str(rounded), "0.00")
    self.assertFalse(rounded.is_signed())

  def test_not_representable(self):
    for value in (float("nan"), float("inf"), float("-inf"), 1e30):
      with self.assertRaises(ValueError):
        round_half_down(value)


class ArmStateTests(unittest.IsolatedAsyncioTestCase):
  def setUp(self):
    self.arm_state = ArmState(PlateLayout(), x=10, y=5)

  def test_initial_position_rounded(self):
    arm_state = ArmState(PlateLayout(), x=1.2345, y=-0.125)
    self.assertEqual(arm_state.position, ArmPosition(1.23, -0.12))

  def test_set_location_rounds(self):
    self.arm_state.set_location(12.345678, 0.375)
    self.assertEqual(self.arm_state.position, ArmPosition(12.35, 0.37))

  def test_snapshot_is_immutable(self):
    snapshot = self.arm_state.position
    with self.assertRaises(dataclasses.FrozenInstanceError):
      snapshot.x = 0  # type: ignore[misc]
    self.arm_state.set_location(1, 2)
    self.assertEqual(snapshot, ArmPosition(10, 5))

  async def test_only_claiming_task_can_write(self):
    self.arm_state.claim()

    async def intruder():
      self.arm_state.set_location(0, 0)

    with self.assertRaises(RuntimeError):
      await asyncio.create_task(intruder())
    self.assertEqual(self.arm_state.position, ArmPosition(10, 5))

    self.arm_state.set_location(1, 1)
    self.assertEqual(self.arm_state.position, ArmPosition(1, 1))
    self.arm_state.release()

  async def test_cannot_claim_twice(self):
    self.arm_state.claim()

    async def second_writer():
      self.arm_state.claim()

    with self.assertRaises(RuntimeError):
      await asyncio.create_task(second_writer())
    self.arm_state.release()

    await asyncio.create_task(second_writer())  # free again
