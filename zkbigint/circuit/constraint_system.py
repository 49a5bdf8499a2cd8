"""Append-only accumulation of constraints for provable arithmetic.

The backend runs in prover mode: every variable carries its concrete value and
every constraint is checked the moment it is emitted. A constraint that does
not hold raises `ConstraintViolation`, which aborts the surrounding operation.
Emitted constraints are never removed or rewritten.

The active system is ambient. Library code calls the module-level helpers
(`witness`, `assert_equal`, ...) which append to `current()`; callers that
want an isolated count open a fresh system with `circuit()`.
"""

import collections
import contextlib
import dataclasses
import logging
from typing import Callable, Dict, Iterable, Iterator, List, Tuple

from zkbigint.circuit import field

# Row cost of each constraint kind, modelled on the Kimchi gate layout:
# a generic gate holds one equation, a 64-bit range check takes a
# RangeCheck0 gate plus its lookup rows.
ROW_COST = {
    "generic": 1,
    "boolean": 1,
    "range_check_16": 1,
    "range_check_32": 1,
    "range_check_64": 4,
    "range_check_n": 4,
}


class ConstraintViolation(AssertionError):
  """Raised when an emitted constraint does not hold for the witness."""

  def __init__(self, kind: str, description: str) -> None:
    super().__init__(f"Constraint '{kind}' violated: {description}")
    self.kind = kind
    self.description = description


@dataclasses.dataclass(frozen=True)
class Constraint:
  kind: str
  description: str
  rows: int


class ConstraintSystem:
  """A log of the constraints emitted by one circuit."""

  def __init__(self, name: str = "main") -> None:
    self.name = name
    self._constraints: List[Constraint] = []
    self._rows = 0
    self._num_witnesses = 0

  @property
  def rows(self) -> int:
    return self._rows

  @property
  def num_witnesses(self) -> int:
    return self._num_witnesses

  @property
  def constraints(self) -> Tuple[Constraint, ...]:
    return tuple(self._constraints)

  def rows_by_kind(self) -> Dict[str, int]:
    counts = collections.Counter()
    for constraint in self._constraints:
      counts[constraint.kind] += constraint.rows
    return dict(counts)

  def add_constraint(self, kind: str, holds: bool, description: str) -> None:
    if kind not in ROW_COST:
      raise ValueError(f"Unknown constraint kind: {kind}")
    if not holds:
      logging.debug("%s: %s violated: %s", self.name, kind, description)
      raise ConstraintViolation(kind, description)
    self._constraints.append(Constraint(kind, description, ROW_COST[kind]))
    self._rows += ROW_COST[kind]

  def register_witnesses(self, count: int) -> None:
    self._num_witnesses += count

  def __repr__(self):
    return (
        f"ConstraintSystem(name={self.name!r}, rows={self._rows},"
        f" constraints={len(self._constraints)})"
    )


_STACK = [ConstraintSystem()]


def current() -> ConstraintSystem:
  return _STACK[-1]


@contextlib.contextmanager
def circuit(name: str = "circuit") -> Iterator[ConstraintSystem]:
  """Makes a fresh constraint system active for the duration of the block."""
  system = ConstraintSystem(name)
  _STACK.append(system)
  try:
    yield system
  finally:
    _STACK.pop()


def witness(compute: Callable[[], int]) -> field.Field:
  """Runs a host-side computation and injects its result as a variable."""
  value = field.Field(compute())
  current().register_witnesses(1)
  return value


def witness_fields(
    count: int, compute: Callable[[], Iterable[int]]
) -> List[field.Field]:
  values = [field.Field(v) for v in compute()]
  if len(values) != count:
    raise ValueError(f"Expected {count} witness values, got {len(values)}")
  current().register_witnesses(count)
  return values


def assert_equal(x, y, description: str = "") -> None:
  current().add_constraint(
      "generic", field.Field(x) == field.Field(y), description or "x == y"
  )


def assert_boolean(x: field.Field, description: str = "") -> None:
  current().add_constraint(
      "boolean", x.value in (0, 1), description or f"{x} is boolean"
  )


def assert_true(b: field.Bool, description: str = "") -> None:
  current().add_constraint(
      "generic", b.to_bool(), description or "condition holds"
  )
