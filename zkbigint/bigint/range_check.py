"""Range checks for limbs wider than the primitive gadgets.

A value is split on the host into pieces of at most 64 bits, each piece is
proven bounded by a primitive range check, and the weighted recombination of
the pieces is asserted equal to the checked value:

    48  = 32 + 16
    116 = 64 + 52
    128 = 64 + 64
    192 = 64 + 64 + 64

Any other width below the native field size uses 64-bit pieces with a
narrower top piece. Bounded comparisons are built on the same checks: x > y
holds exactly when x - y - 1 is in range.
"""

import logging
from typing import Sequence

from zkbigint.circuit import constraint_system
from zkbigint.circuit import field
from zkbigint.circuit import gadgets


def _decompose_and_check(x: field.Field, widths: Sequence[int]) -> None:
  offsets = []
  offset = 0
  for width in widths:
    offsets.append(offset)
    offset += width

  def split():
    value = x.value
    pieces = []
    for width, shift in zip(widths, offsets):
      if shift + width == offset:
        # The top piece keeps all remaining bits so that an oversized value
        # fails its range check instead of being truncated.
        pieces.append(value >> shift)
      else:
        pieces.append((value >> shift) & ((1 << width) - 1))
    return pieces

  pieces = constraint_system.witness_fields(len(widths), split)
  for piece, width in zip(pieces, widths):
    gadgets.range_check_n(piece, width)

  recombined = field.Field(0)
  for piece, shift in zip(pieces, offsets):
    recombined = recombined + piece * (1 << shift)
  constraint_system.assert_equal(
      recombined, x, f"range check: pieces {list(widths)} recombine to x"
  )


def range_check_48(x: field.Field) -> None:
  _decompose_and_check(x, (32, 16))


def range_check_116(x: field.Field) -> None:
  # The high piece is a 64-bit check with its top 12 bits forced to zero.
  _decompose_and_check(x, (64, 52))


def range_check_128(x: field.Field) -> None:
  _decompose_and_check(x, (64, 64))


def range_check_192(x: field.Field) -> None:
  _decompose_and_check(x, (64, 64, 64))


_RANGE_CHECKS = {
    32: gadgets.range_check_32,
    48: range_check_48,
    64: gadgets.range_check_64,
    116: range_check_116,
    128: range_check_128,
    192: range_check_192,
}


def chunk_widths(bits: int):
  full, rest = divmod(bits, gadgets.MAX_PRIMITIVE_BITS)
  widths = [gadgets.MAX_PRIMITIVE_BITS] * full
  if rest:
    widths.append(rest)
  return tuple(widths)


def range_check(x: field.Field, bits: int) -> None:
  """Proves 0 <= x < 2**bits."""
  if bits <= 0 or bits >= field.NATIVE_BITS - 1:
    raise ValueError(
        f"Range checks support 1 to {field.NATIVE_BITS - 2} bits, got {bits}"
    )
  check = _RANGE_CHECKS.get(bits)
  if check is not None:
    check(x)
  elif bits <= gadgets.MAX_PRIMITIVE_BITS:
    gadgets.range_check_n(x, bits)
  else:
    logging.debug("range check of %d bits uses generic pieces", bits)
    _decompose_and_check(x, chunk_widths(bits))


def greater_than(x: field.Field, y: field.Field, bits: int) -> field.Bool:
  """Returns x > y for x, y already known to lie in [0, 2**bits)."""
  gt = gadgets.witness_bool(lambda: x.value > y.value)
  diff = gt.to_field() * (x - y - 1) + gt.not_().to_field() * (y - x)
  range_check(diff, bits)
  return gt


def less_than(x: field.Field, y: field.Field, bits: int) -> field.Bool:
  """Returns x < y for x, y already known to lie in [0, 2**bits)."""
  return greater_than(y, x, bits)
