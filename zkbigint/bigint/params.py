"""Limb layouts for provable big integers."""

import dataclasses
from typing import Dict, Tuple

from zkbigint.circuit import field


@dataclasses.dataclass(frozen=True)
class BigIntParameter:
  """How a big integer is split into limbs.

  A value is stored as `limb_num` limbs of `limb_size` bits, little endian.
  MAX bounds the integers accepted at construction and may be smaller than
  the capacity of the limbs (e.g. a 576-bit layout used for 512-bit values).
  """

  limb_num: int
  limb_size: int
  MAX: int

  # 2**limb_size - 1
  mask: int = dataclasses.field(init=False)

  def __post_init__(self) -> None:
    if self.limb_num < 1 or self.limb_size < 1:
      raise ValueError(
          f"Invalid limb layout: {self.limb_num} limbs of"
          f" {self.limb_size} bits"
      )
    if self.carry_bits >= field.NATIVE_BITS - 1:
      raise ValueError(
          f"Limb size {self.limb_size} leaves no room for {self.carry_bits}-bit"
          " carries in a native field element"
      )
    if not 0 < self.MAX < (1 << (self.limb_num * self.limb_size)):
      raise ValueError(
          f"MAX must be positive and fit in {self.limb_num} limbs of"
          f" {self.limb_size} bits"
      )
    object.__setattr__(self, "mask", (1 << self.limb_size) - 1)

  @property
  def total_bits(self) -> int:
    return self.limb_num * self.limb_size

  @property
  def carry_bits(self) -> int:
    """Width of an offset carry in the limb-product identity chain.

    Carries are bounded by (limb_num + 1) * 2**limb_size in absolute value,
    which is below 2**(limb_size + bit_length(limb_num)).
    """
    return self.limb_size + self.limb_num.bit_length() + 1

  @property
  def product_bits(self) -> int:
    """Worst-case width of a limb-product coefficient plus incoming carry."""
    return 2 * self.limb_size + (self.limb_num + 1).bit_length()

  @property
  def fits_native_field(self) -> bool:
    # One bit is kept for the sign of the coefficient.
    return self.product_bits < field.NATIVE_BITS - 1


def _params(limb_num: int, limb_size: int, max_bits: int) -> BigIntParameter:
  return BigIntParameter(
      limb_num=limb_num, limb_size=limb_size, MAX=(1 << max_bits) - 1
  )


BIG_INT_PARAMS: Dict[str, BigIntParameter] = {
    "384_12": _params(12, 32, 384),
    "384_9": _params(9, 48, 384),
    "384_6": _params(6, 64, 384),
    "384_3": _params(3, 128, 384),
    "384_2": _params(2, 192, 384),
    "512_16": _params(16, 32, 512),
    "512_8": _params(8, 64, 512),
    "512_4": _params(4, 128, 512),
    "576_9": _params(9, 64, 512),
    "1024_16": _params(16, 64, 1024),
    "1024_8": _params(8, 128, 1024),
    "2048_18": _params(18, 116, 2088),
    "2048_16": _params(16, 128, 2048),
    "2048_32": _params(32, 64, 2048),
}

PARAM_LIST: Tuple[str, ...] = tuple(BIG_INT_PARAMS)


def get_params(name: str) -> BigIntParameter:
  try:
    return BIG_INT_PARAMS[name]
  except KeyError:
    raise ValueError(
        f"Unknown parameter set {name!r}, expected one of {list(PARAM_LIST)}"
    ) from None
