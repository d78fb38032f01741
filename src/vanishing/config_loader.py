"""
Loading of the size-based retention policy from disk.

The policy lives in a TOML document, by default at
`<user config dir>/vanishing/config.toml`:

    limits = [
      [0, "10MB", "30d"],
      ["10MB", "1GB", "7d"],
      ["1GB", "18446744073709551615", "24h"],
    ]

Each entry is `[lower_bound, upper_bound, duration]`. A missing file is not
an error: the default policy (everything kept for 24 hours) is used instead.

Usage:
    >>> from vanishing.config_loader import load, default_config_path
    >>> policy = load(default_config_path())
"""

from __future__ import annotations

import logging
import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError

from .errors import ConfigIOError, ParseFailure, PolicyError
from .policy import SizeDurationPolicy, default_policy
from .units import parse_byte_size

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "VANISHING_CONFIG"
APP_DIR_NAME = "vanishing"
CONFIG_FILE_NAME = "config.toml"

SOURCE_DEFAULT = "default"
SOURCE_FILE = "file"

PathLike = Union[str, "os.PathLike[str]"]


class PolicyDocument(BaseModel):
  """Structural shape of the configuration document."""

  model_config = ConfigDict(extra="forbid")

  limits: List[Tuple[Union[StrictInt, StrictStr], Union[StrictInt, StrictStr], StrictStr]]


@dataclass(frozen=True)
class LoadResult:
  """
  Outcome of a load attempt: exactly one of `policy` and `error` is set.

  `source` tells whether the policy came from the file or from the default
  fallback; it is None when loading failed.
  """

  path: Path
  policy: Optional[SizeDurationPolicy] = None
  error: Optional[PolicyError] = None
  source: Optional[str] = None

  @property
  def ok(self) -> bool:
    return self.error is None

  def unwrap(self) -> SizeDurationPolicy:
    if self.error is not None:
      raise self.error
    if self.policy is None:
      raise ValueError("LoadResult holds neither a policy nor an error")
    return self.policy


def user_config_dir() -> Path:
  """
  Per-user configuration directory for the current platform.

  Raises:
    ConfigIOError: If no home or config directory can be determined.
  """
  try:
    if sys.platform == "darwin":
      return Path.home() / "Library" / "Application Support"
    if sys.platform == "win32":
      appdata = os.getenv("APPDATA")
      if not appdata:
        raise RuntimeError("APPDATA is not set")
      return Path(appdata)

    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg and Path(xdg).is_absolute():
      return Path(xdg)
    return Path.home() / ".config"
  except RuntimeError as exc:
    raise ConfigIOError(None, exc) from exc


def default_config_path() -> Path:
  """Config file path, honouring the VANISHING_CONFIG override."""
  override = os.getenv(CONFIG_ENV_VAR)
  if override:
    return Path(override).expanduser()
  return user_config_dir() / APP_DIR_NAME / CONFIG_FILE_NAME


def parse_document(contents: str) -> List[Tuple[int, int, str]]:
  """
  Parse configuration text into raw (lower, upper, duration_text) entries.

  Byte-size bounds are resolved to integers here; durations are left as text
  for the policy to validate.

  Raises:
    ParseFailure: On TOML syntax errors or a malformed `limits` list.
  """
  try:
    data = tomllib.loads(contents)
  except tomllib.TOMLDecodeError as exc:
    raise ParseFailure(str(exc)) from exc

  try:
    document = PolicyDocument.model_validate(data)
  except ValidationError as exc:
    raise ParseFailure(_describe_validation_error(exc)) from exc

  entries: List[Tuple[int, int, str]] = []
  for index, (lower, upper, duration_text) in enumerate(document.limits):
    try:
      entries.append((parse_byte_size(lower), parse_byte_size(upper), duration_text))
    except ParseFailure as exc:
      raise ParseFailure(f"limits[{index}]: {exc.message}") from exc
  return entries


def _describe_validation_error(exc: ValidationError) -> str:
  parts = []
  for err in exc.errors():
    location = ".".join(str(part) for part in err["loc"]) or "<document>"
    parts.append(f"{location}: {err['msg']}")
  return "; ".join(parts)


def _read(path: Path) -> Tuple[SizeDurationPolicy, str]:
  try:
    contents = path.read_text(encoding="utf-8")
  except FileNotFoundError:
    logger.debug("Config not found at %s. Falling back to default", path)
    return default_policy(), SOURCE_DEFAULT
  except (OSError, UnicodeDecodeError) as exc:
    raise ConfigIOError(str(path), exc) from exc

  policy = SizeDurationPolicy.build(parse_document(contents))
  logger.debug("Loaded %d limit(s) from %s", len(policy), path)

  for first, second in policy.overlaps():
    logger.warning(
      "Size ranges %s and %s overlap; the narrower range applies to shared sizes",
      (first.lower, first.upper),
      (second.lower, second.upper),
    )
  return policy, SOURCE_FILE


def load(path: PathLike) -> SizeDurationPolicy:
  """
  Load the retention policy stored at `path`.

  Returns the default policy when no file exists at `path`.

  Raises:
    ConfigIOError: If the file exists but cannot be read.
    ParseFailure: If the file is not a well-formed policy document.
    InvertedRange, DuplicateRange, InvalidDuration: On semantic errors.
  """
  policy, _source = _read(Path(path))
  return policy


def try_load(path: PathLike) -> LoadResult:
  """Like `load`, but reports failures in the returned LoadResult."""
  resolved = Path(path)
  try:
    policy, source = _read(resolved)
  except PolicyError as exc:
    return LoadResult(path=resolved, error=exc)
  return LoadResult(path=resolved, policy=policy, source=source)
