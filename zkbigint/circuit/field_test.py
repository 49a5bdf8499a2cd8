"""Tests for native field elements."""

import hypothesis
from hypothesis import strategies
from zkbigint.circuit import field

from absl.testing import absltest

P = field.NATIVE_MODULUS


class FieldTest(absltest.TestCase):

  def test_modulus_is_pallas(self):
    self.assertEqual(field.NATIVE_BITS, 255)
    self.assertEqual(P % (1 << 32), 1)

  def test_reduces_on_construction(self):
    self.assertEqual(field.Field(P + 5).value, 5)
    self.assertEqual(field.Field(-1).value, P - 1)

  def test_arithmetic_with_ints(self):
    x = field.Field(7)
    self.assertEqual((x + 3).value, 10)
    self.assertEqual((3 + x).value, 10)
    self.assertEqual((x - 10).value, P - 3)
    self.assertEqual((10 - x).value, 3)
    self.assertEqual((x * 6).value, 42)
    self.assertEqual((-x).value, P - 7)

  def test_to_signed(self):
    self.assertEqual(field.Field(-5).to_signed(), -5)
    self.assertEqual(field.Field(5).to_signed(), 5)
    self.assertEqual(field.Field(P // 2).to_signed(), P // 2)
    self.assertEqual(field.Field(P // 2 + 1).to_signed(), -(P // 2))

  def test_inverse(self):
    x = field.Field(123456789)
    self.assertEqual((x * x.inverse()).value, 1)
    with self.assertRaises(ZeroDivisionError):
      field.Field(0).inverse()

  def test_unsupported_operand(self):
    with self.assertRaises(TypeError):
      field.Field(1) + 1.5  # pylint: disable=expression-not-assigned

  @hypothesis.settings(deadline=None)
  @hypothesis.given(
      strategies.integers(min_value=-(2**300), max_value=2**300),
      strategies.integers(min_value=-(2**300), max_value=2**300),
  )
  def test_matches_integer_arithmetic_mod_p(self, a: int, b: int):
    fa, fb = field.Field(a), field.Field(b)
    self.assertEqual((fa + fb).value, (a + b) % P)
    self.assertEqual((fa - fb).value, (a - b) % P)
    self.assertEqual((fa * fb).value, (a * b) % P)


class BoolTest(absltest.TestCase):

  def test_construction(self):
    self.assertTrue(field.Bool(True).to_bool())
    self.assertFalse(field.Bool(0).to_bool())
    self.assertTrue(field.Bool(field.Field(1)).to_bool())
    with self.assertRaises(ValueError):
      field.Bool(2)

  def test_logic(self):
    t, f = field.Bool(True), field.Bool(False)
    self.assertTrue(t.and_(t).to_bool())
    self.assertFalse(t.and_(f).to_bool())
    self.assertTrue(t.or_(f).to_bool())
    self.assertTrue(f.or_(t).to_bool())
    self.assertFalse(f.or_(f).to_bool())
    self.assertFalse(t.not_().to_bool())
    self.assertTrue(f.not_().to_bool())


if __name__ == "__main__":
  absltest.main()
