"""Conversions between Python integers and little-endian limb sequences.

Limb i holds bits [i * limb_size, (i + 1) * limb_size) of the integer:

    index     [         0,                     1, ...]
    bits      [0 ~ size-1,  size ~ 2 * size - 1, ...]

Numpy arrays use the narrowest unsigned dtype that holds a limb; limbs wider
than 64 bits are kept in object arrays of Python ints.
"""

from typing import List, Sequence

import numpy as np


def bits_to_numpy_dtype(bits):
  if bits <= 8:
    return np.uint8
  elif bits <= 16:
    return np.uint16
  elif bits <= 32:
    return np.uint32
  elif bits <= 64:
    return np.uint64
  else:
    return object


def int_to_limbs(value: int, limb_size: int, limb_num: int) -> List[int]:
  """Splits a non-negative integer into exactly limb_num limbs.

  Bits above limb_num * limb_size are not representable and raise.
  """
  if value < 0:
    raise ValueError("Only non-negative integers can be split into limbs")
  mask = (1 << limb_size) - 1
  limbs = []
  for _ in range(limb_num):
    limbs.append(value & mask)
    value >>= limb_size
  if value:
    raise ValueError(
        f"Integer does not fit in {limb_num} limbs of {limb_size} bits"
    )
  return limbs


def limbs_to_int(limbs: Sequence[int], limb_size: int) -> int:
  result = 0
  for i, limb in enumerate(limbs):
    result |= int(limb) << (i * limb_size)
  return result


def int_to_array(python_int, limb_size, array_size) -> np.ndarray:
  """Converts a Python integer to a numpy array of limbs.

  Args:
    python_int: The Python integer to convert.
    limb_size: The number of bits per element.
    array_size: The number of limbs in the result.

  Returns:
    A numpy array containing the limbs of the Python integer.
  """
  return np.array(
      int_to_limbs(int(python_int), limb_size, array_size),
      dtype=bits_to_numpy_dtype(limb_size),
  )


def array_to_int(np_array: np.ndarray, limb_size) -> int:
  return limbs_to_int(np_array.tolist(), limb_size)


def int_list_to_array(int_list, limb_size, array_size) -> np.ndarray:
  chunked_arrays = [
      int_to_array(int_value, limb_size, array_size) for int_value in int_list
  ]
  return np.array(chunked_arrays, dtype=bits_to_numpy_dtype(limb_size))


def array_to_int_list(np_array: np.ndarray, limb_size) -> List[int]:
  return [array_to_int(row, limb_size) for row in np_array]
