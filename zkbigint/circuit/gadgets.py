"""Primitive gadgets over native field variables.

The fixed-width range checks here are the building blocks the big-integer
range-check family decomposes into. They only accept widths up to 64 bits.
"""

from typing import Callable

import gmpy2
from zkbigint.circuit import constraint_system
from zkbigint.circuit import field

MAX_PRIMITIVE_BITS = 64

_KIND_BY_BITS = {
    16: "range_check_16",
    32: "range_check_32",
    64: "range_check_64",
}


def range_check_n(x: field.Field, bits: int) -> None:
  """Proves 0 <= x < 2**bits for 0 < bits <= 64."""
  if not 0 < bits <= MAX_PRIMITIVE_BITS:
    raise ValueError(
        f"Primitive range check supports 1 to {MAX_PRIMITIVE_BITS} bits,"
        f" got {bits}"
    )
  constraint_system.current().add_constraint(
      _KIND_BY_BITS.get(bits, "range_check_n"),
      x.value < (1 << bits),
      f"{x} fits in {bits} bits",
  )


def range_check_16(x: field.Field) -> None:
  range_check_n(x, 16)


def range_check_32(x: field.Field) -> None:
  range_check_n(x, 32)


def range_check_64(x: field.Field) -> None:
  range_check_n(x, 64)


def witness_bool(compute: Callable[[], bool]) -> field.Bool:
  bit = constraint_system.witness(lambda: int(bool(compute())))
  constraint_system.assert_boolean(bit)
  return field.Bool(bit)


def is_equal(x: field.Field, y: field.Field) -> field.Bool:
  """Returns a boolean variable that is 1 iff x == y.

  Uses the inverse trick: with z = x - y and a witnessed inv, eq = 1 - z * inv
  and z * eq == 0 force eq to be the equality bit.
  """
  z = x - y
  inv = constraint_system.witness(
      lambda: 0 if z.value == 0 else gmpy2.invert(z.value, field.NATIVE_MODULUS)
  )
  eq = constraint_system.witness(lambda: 1 - (z * inv).value)
  constraint_system.assert_equal(eq + z * inv, 1, "is_equal: eq = 1 - z * inv")
  constraint_system.assert_equal(z * eq, 0, "is_equal: z * eq == 0")
  return field.Bool(eq)


def select(b: field.Bool, x: field.Field, y: field.Field) -> field.Field:
  """Returns x if b else y."""
  return y + b.to_field() * (x - y)
