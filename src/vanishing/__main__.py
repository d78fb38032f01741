from __future__ import annotations

import logging
import os
import sys
from typing import NoReturn

from .config_loader import SOURCE_DEFAULT, default_config_path, try_load
from .errors import PolicyError

_LOG_LEVELS = {
  "debug": logging.DEBUG,
  "info": logging.INFO,
  "warn": logging.WARNING,
  "warning": logging.WARNING,
  "error": logging.ERROR,
}


def _configure_logging() -> None:
  raw = os.getenv("VANISHING_LOG_LEVEL", "warning").strip().lower()
  # Unknown values fall back to the default level.
  level = _LOG_LEVELS.get(raw, logging.WARNING)
  logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
  logging.getLogger().setLevel(level)


def main(argv: list[str] | None = None) -> NoReturn:
  argv = list(sys.argv[1:] if argv is None else argv)
  _configure_logging()

  if argv:
    print("Usage: vanishing", file=sys.stderr)
    print("`vanishing` doesn't take any command line args", file=sys.stderr)
    sys.exit(2)

  try:
    config_path = default_config_path()
  except PolicyError as exc:
    print(f"vanishing: {exc}", file=sys.stderr)
    sys.exit(1)

  result = try_load(config_path)
  if not result.ok:
    print(f"vanishing: {result.error}", file=sys.stderr)
    sys.exit(1)

  if result.source == SOURCE_DEFAULT:
    print(f"Config: {config_path} (not found, using default policy)")
  else:
    print(f"Config: {config_path}")
  print(result.policy.describe())
  sys.exit(0)


if __name__ == "__main__":
  main()
