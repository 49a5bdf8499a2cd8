"""Host-side witness computation for the big-integer gadgets.

Everything here runs outside the circuit on plain integers (usually the
shadow values of the operands). Results are only hints: the gadgets inject
them as fresh variables and then constrain them, so nothing computed here is
trusted on its own.
"""

import logging
from typing import List, Sequence, Tuple

import gmpy2


def mul_witness(a: int, b: int, modulus: int) -> Tuple[int, int]:
  """Returns (q, r) with a * b == q * modulus + r and 0 <= r < modulus."""
  q, r = gmpy2.f_divmod(gmpy2.mpz(a) * b, modulus)
  return int(q), int(r)


def div_witness(a: int, b: int) -> Tuple[int, int]:
  """Returns (q, r) with a == q * b + r and 0 <= r < b."""
  if b == 0:
    raise ZeroDivisionError("division by zero")
  r = gmpy2.f_mod(a, b)
  q = gmpy2.f_div(gmpy2.mpz(a) - r, b)
  return int(q), int(r)


def negate_witness(a: int, modulus: int) -> int:
  return int(gmpy2.f_mod(-gmpy2.mpz(a), modulus))


def inverse_witness(a: int, modulus: int) -> int:
  """Raises ZeroDivisionError when a has no inverse modulo modulus."""
  return int(gmpy2.invert(a, modulus))


def sqrt_witness(a: int, modulus: int) -> int:
  """Returns a square root of a modulo a prime with Tonelli-Shanks."""
  p = gmpy2.mpz(modulus)
  if p < 2 or not gmpy2.is_prime(p):
    raise ValueError(f"Square roots need a prime modulus, got {modulus}")
  a = gmpy2.f_mod(a, p)
  if a == 0 or p == 2:
    return int(a)
  if gmpy2.legendre(a, p) != 1:
    raise ValueError(f"{int(a)} is not a quadratic residue modulo {modulus}")
  if p % 4 == 3:
    return int(gmpy2.powmod(a, (p + 1) // 4, p))

  # p - 1 = q * 2**s with q odd
  q, s = p - 1, 0
  while q % 2 == 0:
    q //= 2
    s += 1
  z = gmpy2.mpz(2)
  while gmpy2.legendre(z, p) != -1:
    z += 1

  m = s
  c = gmpy2.powmod(z, q, p)
  t = gmpy2.powmod(a, q, p)
  r = gmpy2.powmod(a, (q + 1) // 2, p)
  while t != 1:
    i, t2 = 0, t
    while t2 != 1:
      t2 = t2 * t2 % p
      i += 1
    b = gmpy2.powmod(c, 1 << (m - i - 1), p)
    m = i
    c = b * b % p
    t = t * c % p
    r = r * b % p
  return int(r)


def convolve(x: Sequence[int], y: Sequence[int]) -> List[int]:
  """Coefficients of the product of two limb polynomials."""
  out = [0] * (len(x) + len(y) - 1)
  for i, xi in enumerate(x):
    for j, yj in enumerate(y):
      out[i + j] += xi * yj
  return out


def mul_identity_delta(
    x: Sequence[int],
    y: Sequence[int],
    q: Sequence[int],
    p: Sequence[int],
    r: Sequence[int],
) -> List[int]:
  """Coefficients of X * Y - Q * P - R as exact integers."""
  delta = [
      xy - qp for xy, qp in zip(convolve(x, y), convolve(q, p))
  ]
  for i, ri in enumerate(r):
    delta[i] -= ri
  return delta


def div_identity_delta(
    q: Sequence[int],
    b: Sequence[int],
    r: Sequence[int],
    a: Sequence[int],
) -> List[int]:
  """Coefficients of Q * B + R - A as exact integers."""
  delta = convolve(q, b)
  for i, (ri, ai) in enumerate(zip(r, a)):
    delta[i] += ri - ai
  return delta


def signed_carries(delta: Sequence[int], limb_size: int) -> List[int]:
  """Carries that absorb every coefficient but the last one.

  carry_i = (delta_i + carry_{i-1}) / 2**limb_size. The division floors, so
  for an inconsistent delta the remainder is dropped here and the gadget's
  absorption constraint fails.
  """
  carries = []
  carry = 0
  for coefficient in delta[:-1]:
    carry = (coefficient + carry) >> limb_size
    carries.append(carry)
  logging.debug("carry chain over %d positions: %s", len(carries), carries)
  return carries
