"""Counts the constraint rows of every big-integer operation per layout.

Usage:
  python -m zkbigint.benchmark --params=384_6,2048_18 --output_dir=logs
"""

import datetime
import json
import logging
import os
from typing import Dict, List, Sequence, Tuple

from absl import app
from absl import flags
import numpy as np
from zkbigint.bigint import params as bigint_params
from zkbigint.bigint import provable_bigint
from zkbigint.circuit import constraint_system

_PARAMS = flags.DEFINE_list(
    "params",
    list(bigint_params.PARAM_LIST),
    "Names of the limb layouts to benchmark.",
)
_OUTPUT_DIR = flags.DEFINE_string(
    "output_dir", "logs", "Directory the JSON summary is written to."
)
_SEED = flags.DEFINE_integer("seed", 0, "Seed for the sampled operands.")

OPERATIONS = ("add", "sub", "mul", "div", "mod")


def _random_below(bound: int, rng: np.random.Generator) -> int:
  """Uniform-ish integer in [0, bound) from the generator's raw bytes."""
  num_bytes = (bound.bit_length() + 7) // 8 + 8
  return int.from_bytes(rng.bytes(num_bytes), "little") % bound


def sample_operands(
    params: bigint_params.BigIntParameter, rng: np.random.Generator
) -> Tuple[int, int, int]:
  """Returns (a, b, m) with 1 <= b <= a < m <= MAX.

  These satisfy the preconditions of every benchmarked operation, sub and
  fully reduced add included.
  """
  m = 2 + _random_below(params.MAX - 1, rng)
  a = 1 + _random_below(m - 1, rng)
  b = 1 + _random_below(a, rng)
  return a, b, m


def count_rows(
    bigint_t: provable_bigint.BigIntType,
    operation: str,
    a: int,
    b: int,
    m: int,
) -> int:
  """Runs one operation in a fresh constraint system and returns its rows."""
  if operation not in OPERATIONS:
    raise ValueError(f"Unknown operation: {operation}")
  with constraint_system.circuit(operation) as system:
    modulus = bigint_t.from_int(m)
    x, y = bigint_t.from_int(a), bigint_t.from_int(b)
    if operation == "mod":
      modulus.mod(x)
    else:
      getattr(modulus, operation)(x, y)
  return system.rows


def run_benchmark(names: Sequence[str], seed: int = 0) -> List[Dict]:
  rng = np.random.default_rng(seed)
  results = []
  for name in names:
    params = bigint_params.get_params(name)
    bigint_t = provable_bigint.bigint_type(params)
    a, b, m = sample_operands(params, rng)
    entry = {"parameter": name}
    for operation in OPERATIONS:
      entry[operation] = count_rows(bigint_t, operation, a, b, m)
    logging.info(
        "%s: %s",
        name,
        ", ".join(f"{op}={entry[op]}" for op in OPERATIONS),
    )
    results.append(entry)
  return results


def write_summary(results: List[Dict], output_dir: str) -> str:
  """Writes the results to benchmark_<timestamp>.json and returns its path."""
  os.makedirs(output_dir, exist_ok=True)
  timestamp = datetime.datetime.now().strftime("%Y%m%dT%H%M%S")
  path = os.path.join(output_dir, f"benchmark_{timestamp}.json")
  with open(path, "w") as f:
    json.dump(results, f, indent=2)
  return path


def main(argv: Sequence[str]) -> None:
  if len(argv) > 1:
    raise app.UsageError("Too many command-line arguments.")

  results = run_benchmark(_PARAMS.value, _SEED.value)
  rows = np.array([[entry[op] for op in OPERATIONS] for entry in results])
  for op, total in zip(OPERATIONS, rows.sum(axis=0)):
    logging.info("total %s rows over %d layouts: %d", op, len(results), total)
  path = write_summary(results, _OUTPUT_DIR.value)
  logging.info("wrote %s", path)


if __name__ == "__main__":
  app.run(main)
