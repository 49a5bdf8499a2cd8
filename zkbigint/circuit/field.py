"""Native field elements for the constraint backend.

All circuit variables live in the Pallas base field. A `Field` holds the
concrete (prover side) value of a variable; arithmetic on `Field` builds the
linear and quadratic expressions that constraints are stated over and does not
emit constraints by itself.

The signed lift maps a canonical element into (-p/2, p/2], which is how
intermediate quantities that may be negative (borrows, carries) are read back
on the host.
"""

import gmpy2

NATIVE_MODULUS = 0x40000000000000000000000000000000224698FC094CF91B992D30ED00000001
NATIVE_BITS = NATIVE_MODULUS.bit_length()
_HALF_MODULUS = NATIVE_MODULUS // 2


def _as_int(value) -> int:
  if isinstance(value, Field):
    return value.value
  if isinstance(value, (int, gmpy2.mpz)):
    return int(value)
  raise TypeError(f"Unsupported type for Field arithmetic: {type(value)}")


class Field:
  """An element of the native prime field."""

  __slots__ = ("_value",)

  def __init__(self, value=0) -> None:
    self._value = _as_int(value) % NATIVE_MODULUS

  @property
  def value(self) -> int:
    return self._value

  def __add__(self, other):
    try:
      return Field(self._value + _as_int(other))
    except TypeError:
      return NotImplemented

  __radd__ = __add__

  def __sub__(self, other):
    try:
      return Field(self._value - _as_int(other))
    except TypeError:
      return NotImplemented

  def __rsub__(self, other):
    try:
      return Field(_as_int(other) - self._value)
    except TypeError:
      return NotImplemented

  def __mul__(self, other):
    try:
      return Field(self._value * _as_int(other))
    except TypeError:
      return NotImplemented

  __rmul__ = __mul__

  def __neg__(self):
    return Field(-self._value)

  def inverse(self) -> "Field":
    if self._value == 0:
      raise ZeroDivisionError("Zero has no inverse in the native field")
    return Field(gmpy2.invert(self._value, NATIVE_MODULUS))

  def to_signed(self) -> int:
    """Returns the representative of this element in (-p/2, p/2]."""
    if self._value > _HALF_MODULUS:
      return self._value - NATIVE_MODULUS
    return self._value

  def __eq__(self, other):
    try:
      return self._value == _as_int(other) % NATIVE_MODULUS
    except TypeError:
      return NotImplemented

  def __hash__(self):
    return hash(self._value)

  def __int__(self):
    return self._value

  def __repr__(self):
    return f"Field({self._value})"


class Bool:
  """A field element known to be 0 or 1.

  The host value is validated on construction; booleanity inside the circuit
  is the job of `gadgets.assert_boolean` for witnessed bits.
  """

  __slots__ = ("_field",)

  def __init__(self, value) -> None:
    if isinstance(value, Bool):
      value = value.to_field()
    if isinstance(value, bool):
      value = int(value)
    field_value = Field(value)
    if field_value.value not in (0, 1):
      raise ValueError(f"Bool must be 0 or 1, got {field_value.value}")
    self._field = field_value

  def to_field(self) -> Field:
    return self._field

  def to_bool(self) -> bool:
    return self._field.value == 1

  def and_(self, other: "Bool") -> "Bool":
    return Bool(self._field * other.to_field())

  def or_(self, other: "Bool") -> "Bool":
    a, b = self._field, other.to_field()
    return Bool(a + b - a * b)

  def not_(self) -> "Bool":
    return Bool(1 - self._field)

  def __repr__(self):
    return f"Bool({self.to_bool()})"
