"""Lets pytest collect absltest modules that read absl flags."""

from absl import flags


def pytest_configure():
  # absltest.main() parses flags; under pytest only the defaults apply.
  flags.FLAGS.mark_as_parsed()
