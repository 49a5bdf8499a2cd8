"""Provable modular big integers over bounded native field limbs.

- Data Representation.
A value is `limb_num` native field variables, little endian, each proven to
lie in [0, 2**limb_size):

    value = sum(limbs[i] * 2**(i * limb_size))

Next to the limbs every value keeps a `shadow`, the same integer as a plain
Python int. The shadow is a host-side cache used to compute witnesses
(quotients, remainders, roots); it is never trusted for a result without the
constraints that tie the witness back to the limbs.

- Modulus Instances.
Operations are methods of the value acting as the modulus:

    modulus.add(a, b) == (a + b) mod modulus
    modulus.mul(a, b) == (a * b) mod modulus

Any value can be a modulus for any call.

- Compute-then-verify.
Every gadget first computes auxiliary values on the host (`witness` module),
injects them with their own range checks, then emits the identities that bind
them to the operands. All constraints of an operation are emitted before it
returns.
"""

import functools
import logging
from typing import List, NamedTuple, Sequence, Union

import gmpy2
import numpy as np
from zkbigint.bigint import limbs as limb_codec
from zkbigint.bigint import params as bigint_params
from zkbigint.bigint import range_check
from zkbigint.bigint import witness as witness_lib
from zkbigint.circuit import constraint_system
from zkbigint.circuit import field
from zkbigint.circuit import gadgets


class RangeError(ValueError):
  """Raised when an integer does not fit a limb layout."""


class DivResult(NamedTuple):
  quotient: "ProvableBigInt"
  remainder: "ProvableBigInt"


def _convolve(x: Sequence[field.Field], y: Sequence[field.Field]):
  out = [field.Field(0)] * (len(x) + len(y) - 1)
  for i, xi in enumerate(x):
    for j, yj in enumerate(y):
      out[i + j] = out[i + j] + xi * yj
  return out


def _host_values(limbs: Sequence[field.Field]) -> List[int]:
  return [limb.value for limb in limbs]


class BigIntType:
  """Arithmetic over one limb layout.

  Use `bigint_type` to obtain instances; it returns one shared type per
  parameter set so that values built from the same layout are compatible.
  """

  def __init__(self, params: bigint_params.BigIntParameter) -> None:
    self._params = params
    if not params.fits_native_field:
      logging.warning(
          "Limb products of %d x %d-bit limbs need %d bits and wrap the %d-bit"
          " native field; the multiplication identity holds only modulo the"
          " native prime for this layout.",
          params.limb_num,
          params.limb_size,
          params.product_bits,
          field.NATIVE_BITS,
      )

  @property
  def params(self) -> bigint_params.BigIntParameter:
    return self._params

  def from_int(self, x) -> "ProvableBigInt":
    """Splits a plain integer into limbs.

    Args:
      x: An integer in [0, MAX].

    Returns:
      The value with its shadow set to x. No constraints are emitted: the
      limbs are in range by construction.

    Raises:
      TypeError: if x is not an int or gmpy2.mpz.
      RangeError: if x is negative or larger than MAX.
    """
    if isinstance(x, bool) or not isinstance(x, (int, gmpy2.mpz)):
      raise TypeError(
          f"Unsupported type for ProvableBigInt: {type(x).__name__}"
      )
    x = int(x)
    if x < 0:
      raise RangeError("Input must be non-negative.")
    if x > self._params.MAX:
      raise RangeError(
          f"Input exceeds {self._params.total_bits}-bit size limit."
      )
    limbs = [
        field.Field(limb)
        for limb in limb_codec.int_to_limbs(
            x, self._params.limb_size, self._params.limb_num
        )
    ]
    return ProvableBigInt(self, limbs, x)

  def witness(self, x) -> "ProvableBigInt":
    """Injects a host-computed integer with every limb range-checked."""
    value = self.from_int(x)
    limbs = constraint_system.witness_fields(
        self._params.limb_num, lambda: _host_values(value.limbs)
    )
    for limb in limbs:
      range_check.range_check(limb, self._params.limb_size)
    return ProvableBigInt(self, limbs, value.shadow)

  def from_limbs(
      self, limbs: Sequence[field.Field], shadow: int
  ) -> "ProvableBigInt":
    """Wraps limbs that the caller has already constrained."""
    if len(limbs) != self._params.limb_num:
      raise ValueError(
          f"Expected {self._params.limb_num} limbs, got {len(limbs)}"
      )
    return ProvableBigInt(self, list(limbs), shadow)

  def zero(self) -> "ProvableBigInt":
    return self.from_int(0)

  def one(self) -> "ProvableBigInt":
    return self.from_int(1)

  def check_compatible(self, *values: "ProvableBigInt") -> None:
    for value in values:
      if not isinstance(value, ProvableBigInt):
        raise TypeError(
            f"Expected a ProvableBigInt, got {type(value).__name__}"
        )
      if value.params != self._params:
        raise TypeError(
            f"Cannot mix limb layouts {value.params} and {self._params}"
        )

  # Comparators. Limbs are folded from least to most significant, so the
  # outcome at the highest differing limb decides.

  def greater_than(
      self, a: "ProvableBigInt", b: "ProvableBigInt"
  ) -> field.Bool:
    self.check_compatible(a, b)
    result = field.Bool(False)
    for ai, bi in zip(a.limbs, b.limbs):
      is_greater = range_check.greater_than(ai, bi, self._params.limb_size)
      is_equal = gadgets.is_equal(ai, bi)
      result = is_greater.or_(result.and_(is_equal))
    return result

  def less_than(self, a: "ProvableBigInt", b: "ProvableBigInt") -> field.Bool:
    self.check_compatible(a, b)
    result = field.Bool(False)
    for ai, bi in zip(a.limbs, b.limbs):
      is_less = range_check.less_than(ai, bi, self._params.limb_size)
      is_equal = gadgets.is_equal(ai, bi)
      result = is_less.or_(result.and_(is_equal))
    return result

  def greater_than_or_equal(
      self, a: "ProvableBigInt", b: "ProvableBigInt"
  ) -> field.Bool:
    return self.greater_than(a, b).or_(self.equals(a, b))

  def less_than_or_equal(
      self, a: "ProvableBigInt", b: "ProvableBigInt"
  ) -> field.Bool:
    return self.less_than(a, b).or_(self.equals(a, b))

  def equals(self, a: "ProvableBigInt", b: "ProvableBigInt") -> field.Bool:
    self.check_compatible(a, b)
    result = field.Bool(True)
    for ai, bi in zip(a.limbs, b.limbs):
      result = result.and_(gadgets.is_equal(ai, bi))
    return result

  def __repr__(self):
    return f"BigIntType({self._params})"


@functools.lru_cache(maxsize=None)
def _bigint_type(params: bigint_params.BigIntParameter) -> BigIntType:
  return BigIntType(params)


def bigint_type(
    params: Union[str, bigint_params.BigIntParameter],
) -> BigIntType:
  """Returns the arithmetic type for a parameter set or its table name."""
  if isinstance(params, str):
    params = bigint_params.get_params(params)
  return _bigint_type(params)


class ProvableBigInt:
  """An immutable big integer made of range-checked limbs."""

  __slots__ = ("_type", "_limbs", "_shadow")

  def __init__(
      self, bigint_t: BigIntType, limbs: List[field.Field], shadow: int
  ) -> None:
    self._type = bigint_t
    self._limbs = tuple(limbs)
    self._shadow = int(shadow)

  @property
  def type(self) -> BigIntType:
    return self._type

  @property
  def params(self) -> bigint_params.BigIntParameter:
    return self._type.params

  @property
  def limbs(self):
    return self._limbs

  @property
  def shadow(self) -> int:
    return self._shadow

  def to_int(self) -> int:
    return limb_codec.limbs_to_int(
        _host_values(self._limbs), self.params.limb_size
    )

  def to_array(self) -> np.ndarray:
    return np.array(
        _host_values(self._limbs),
        dtype=limb_codec.bits_to_numpy_dtype(self.params.limb_size),
    )

  def __eq__(self, other):
    if not isinstance(other, ProvableBigInt):
      return NotImplemented
    return self.params == other.params and self._limbs == other.limbs

  def __hash__(self):
    return hash((self.params, self._limbs))

  def __repr__(self):
    return (
        f"ProvableBigInt({self.to_int()}, limb_num={self.params.limb_num},"
        f" limb_size={self.params.limb_size})"
    )

  # Limb-level building blocks.

  def _add_limbs(self, x, y):
    """Limb-wise x + y with witnessed carries; returns (limbs, carry_out)."""
    limb_size = self.params.limb_size
    base = 1 << limb_size
    out = []
    carry = field.Bool(False)
    for xi, yi in zip(x, y):
      total = xi + yi + carry.to_field()
      carry = gadgets.witness_bool(lambda total=total: total.value >= base)
      limb = total - carry.to_field() * base
      range_check.range_check(limb, limb_size)
      out.append(limb)
    return out, carry

  def _sub_limbs(self, x, y):
    """Limb-wise x - y with witnessed borrows; returns (limbs, borrow_out)."""
    limb_size = self.params.limb_size
    base = 1 << limb_size
    out = []
    borrow = field.Bool(False)
    for xi, yi in zip(x, y):
      diff = xi - yi - borrow.to_field()
      borrow = gadgets.witness_bool(lambda diff=diff: diff.to_signed() < 0)
      limb = diff + borrow.to_field() * base
      range_check.range_check(limb, limb_size)
      out.append(limb)
    return out, borrow

  def _limbs_at_least(self, x, y) -> field.Bool:
    """x >= y over limbs already known to be in range."""
    result = field.Bool(True)
    for xi, yi in zip(x, y):
      is_greater = range_check.greater_than(xi, yi, self.params.limb_size)
      is_equal = gadgets.is_equal(xi, yi)
      result = is_greater.or_(is_equal.and_(result))
    return result

  def _assert_carry_absorption(
      self, delta: List[field.Field], host_delta: List[int], label: str
  ) -> None:
    """Proves that the limb polynomial delta evaluates to zero at 2**limb_size.

    Each coefficient plus the incoming carry must be an exact multiple of
    2**limb_size; the signed carries are witnessed in offset form and range
    checked, and the last coefficient must cancel the final carry.
    """
    limb_size = self.params.limb_size
    carry_bits = self.params.carry_bits
    offset = 1 << (carry_bits - 1)
    carries = witness_lib.signed_carries(host_delta, limb_size)
    carry = field.Field(0)
    for i, coefficient in enumerate(delta[:-1]):
      total = coefficient + carry
      carry = constraint_system.witness(lambda c=carries[i]: c)
      range_check.range_check(carry + offset, carry_bits)
      constraint_system.assert_equal(
          total,
          carry * (1 << limb_size),
          f"{label}: limb {i} is absorbed into its carry",
      )
    constraint_system.assert_equal(
        delta[-1] + carry, 0, f"{label}: final carry cancels"
    )

  # Modular arithmetic with self as the modulus.

  def add(self, a: "ProvableBigInt", b: "ProvableBigInt") -> "ProvableBigInt":
    """Returns (a + b) mod self.

    The sum is reduced by subtracting self at most once, so the result is
    fully reduced only when a < self and b < self. Outside that range the
    result is still congruent to a + b but may be >= self.

    Raises:
      ConstraintViolation: if the sum overflows the limb layout by more than
        one subtraction of self can absorb.
    """
    self._type.check_compatible(a, b)
    summed, carry_out = self._add_limbs(a.limbs, b.limbs)

    overflow = carry_out.or_(self._limbs_at_least(summed, self._limbs))
    subtrahend = [limb * overflow.to_field() for limb in self._limbs]
    limbs, borrow = self._sub_limbs(summed, subtrahend)
    # The borrow out of the top limb consumes the carry out of the sum.
    constraint_system.assert_equal(
        borrow.to_field(),
        carry_out.to_field(),
        "add: modulus subtraction consumes the overflow",
    )

    shadow = a.shadow + b.shadow
    if overflow.to_bool():
      shadow -= self._shadow
    return self._type.from_limbs(limbs, shadow)

  def sub(self, a: "ProvableBigInt", b: "ProvableBigInt") -> "ProvableBigInt":
    """Returns a - b for a >= b.

    Raises:
      ConstraintViolation: if a < b.
    """
    self._type.check_compatible(a, b)
    limbs, borrow = self._sub_limbs(a.limbs, b.limbs)
    constraint_system.assert_equal(
        borrow.to_field(), 0, "sub: minuend is at least the subtrahend"
    )
    return self._type.from_limbs(limbs, a.shadow - b.shadow)

  def mul(self, a: "ProvableBigInt", b: "ProvableBigInt") -> "ProvableBigInt":
    """Returns (a * b) mod self.

    The quotient and remainder are witnessed, then a * b - q * self - r is
    shown to be the zero polynomial in 2**limb_size by carry absorption.

    Raises:
      ZeroDivisionError: if self is zero.
      RangeError: if the quotient does not fit the limb layout.
    """
    self._type.check_compatible(a, b)
    q_int, r_int = witness_lib.mul_witness(a.shadow, b.shadow, self._shadow)
    q = self._type.witness(q_int)
    r = self._type.witness(r_int)

    products = _convolve(a.limbs, b.limbs)
    reductions = _convolve(q.limbs, self._limbs)
    delta = [xy - qp for xy, qp in zip(products, reductions)]
    for i, ri in enumerate(r.limbs):
      delta[i] = delta[i] - ri
    host_delta = witness_lib.mul_identity_delta(
        _host_values(a.limbs),
        _host_values(b.limbs),
        _host_values(q.limbs),
        _host_values(self._limbs),
        _host_values(r.limbs),
    )
    self._assert_carry_absorption(delta, host_delta, "mul")
    constraint_system.assert_true(
        self._type.less_than(r, self), "mul: remainder is below the modulus"
    )
    return r

  def div(self, a: "ProvableBigInt", b: "ProvableBigInt") -> DivResult:
    """Returns the quotient and remainder of a / b.

    self only selects the limb layout: the identity q * b + r == a is proven
    over the integers, without reduction, together with r < b.

    Raises:
      ZeroDivisionError: if b is zero.
    """
    self._type.check_compatible(a, b)
    q_int, r_int = witness_lib.div_witness(a.shadow, b.shadow)
    q = self._type.witness(q_int)
    r = self._type.witness(r_int)

    delta = _convolve(q.limbs, b.limbs)
    for i, (ri, ai) in enumerate(zip(r.limbs, a.limbs)):
      delta[i] = delta[i] + ri - ai
    host_delta = witness_lib.div_identity_delta(
        _host_values(q.limbs),
        _host_values(b.limbs),
        _host_values(r.limbs),
        _host_values(a.limbs),
    )
    self._assert_carry_absorption(delta, host_delta, "div")
    constraint_system.assert_true(
        self._type.less_than(r, b), "div: remainder is below the divisor"
    )
    return DivResult(quotient=q, remainder=r)

  def mod(self, a: "ProvableBigInt") -> "ProvableBigInt":
    """Returns a mod self."""
    return self.div(a, self).remainder

  def negate(self, a: "ProvableBigInt") -> "ProvableBigInt":
    """Returns (-a) mod self for a < self."""
    self._type.check_compatible(a)
    r = self._type.witness(witness_lib.negate_witness(a.shadow, self._shadow))
    constraint_system.assert_true(
        self._type.equals(self.add(a, r), self._type.zero()),
        "negate: a + r == 0",
    )
    constraint_system.assert_true(
        self._type.less_than(r, self), "negate: result is below the modulus"
    )
    return r

  def inverse(self, a: "ProvableBigInt") -> "ProvableBigInt":
    """Returns the multiplicative inverse of a modulo self.

    Raises:
      ZeroDivisionError: if a is not invertible modulo self.
    """
    self._type.check_compatible(a)
    inv = self._type.witness(
        witness_lib.inverse_witness(a.shadow, self._shadow)
    )
    constraint_system.assert_true(
        self._type.equals(self.mul(a, inv), self._type.one()),
        "inverse: a * inv == 1",
    )
    constraint_system.assert_true(
        self._type.less_than(inv, self), "inverse: result is below the modulus"
    )
    return inv

  def _exponent_bits(self, exponent: "ProvableBigInt") -> List[field.Bool]:
    """Bits of exponent, most significant first."""
    limb_size = self.params.limb_size
    bits = []
    for limb in exponent.limbs:
      limb_bits = constraint_system.witness_fields(
          limb_size,
          lambda limb=limb: [(limb.value >> j) & 1 for j in range(limb_size)],
      )
      recombined = field.Field(0)
      for j, bit in enumerate(limb_bits):
        constraint_system.assert_boolean(bit, f"pow: exponent bit {j}")
        recombined = recombined + bit * (1 << j)
      constraint_system.assert_equal(
          recombined, limb, "pow: exponent bits recombine to the limb"
      )
      bits.extend(field.Bool(bit) for bit in limb_bits)
    bits.reverse()
    return bits

  def _select(
      self, b: field.Bool, x: "ProvableBigInt", y: "ProvableBigInt"
  ) -> "ProvableBigInt":
    limbs = [gadgets.select(b, xi, yi) for xi, yi in zip(x.limbs, y.limbs)]
    return self._type.from_limbs(limbs, x.shadow if b.to_bool() else y.shadow)

  def pow(
      self, base: "ProvableBigInt", exponent: "ProvableBigInt"
  ) -> "ProvableBigInt":
    """Returns base**exponent mod self by square-and-multiply.

    Every bit of the exponent layout is processed, so the constraint count
    does not depend on the exponent's value.
    """
    self._type.check_compatible(base, exponent)
    result = self.mod(self._type.one())
    for bit in self._exponent_bits(exponent):
      result = self.mul(result, result)
      result = self._select(bit, self.mul(result, base), result)
    return result

  def sqrt(self, a: "ProvableBigInt") -> "ProvableBigInt":
    """Returns a square root of a modulo a prime self.

    Raises:
      ValueError: if self is not prime or a is not a quadratic residue.
    """
    self._type.check_compatible(a)
    root = self._type.witness(witness_lib.sqrt_witness(a.shadow, self._shadow))
    constraint_system.assert_true(
        self._type.equals(self.mul(root, root), self.mod(a)),
        "sqrt: root * root == a",
    )
    constraint_system.assert_true(
        self._type.less_than(root, self), "sqrt: root is below the modulus"
    )
    return root
