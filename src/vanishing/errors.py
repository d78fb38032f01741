"""
Error taxonomy for loading a retention policy.

Every failure raised while reading, parsing or validating a policy derives
from `PolicyError`, so callers can catch the whole family in one place and
still tell the kinds apart through the subclass or the `kind` attribute.
"""

from __future__ import annotations

from typing import Optional


class PolicyError(ValueError):
  """Base class for all policy loading failures."""

  kind = "policy_error"


class ConfigIOError(PolicyError):
  """The configuration file exists but could not be read."""

  kind = "io_failure"

  def __init__(self, path: Optional[str], cause: Optional[BaseException] = None) -> None:
    self.path = path
    self.cause = cause
    detail = f" - {cause}" if cause is not None else ""
    if path is None:
      super().__init__(f"Failed locating config dir{detail}")
    else:
      super().__init__(f"I/O error reading config file {path}{detail}")


class ParseFailure(PolicyError):
  """The configuration text is not a well-formed policy document."""

  kind = "parse_failure"

  def __init__(self, message: str) -> None:
    self.message = message
    super().__init__(f"Failed parsing config file - {message}")


class InvalidByteSize(ParseFailure):
  """A byte-size bound could not be interpreted."""

  def __init__(self, value: object, reason: str = "not a valid byte size") -> None:
    self.value = value
    super().__init__(f"{value!r}: {reason}")


class InvertedRange(PolicyError):
  kind = "inverted_range"

  def __init__(self, lower: int, upper: int) -> None:
    self.lower = lower
    self.upper = upper
    super().__init__(
      f"Lower bound greater than upper bound. Lower: {lower} Upper: {upper}"
    )


class DuplicateRange(PolicyError):
  kind = "duplicate_range"

  def __init__(self, lower: int, upper: int) -> None:
    self.lower = lower
    self.upper = upper
    super().__init__(f"Duplicate entry for ({lower}, {upper})")


class InvalidDuration(PolicyError):
  kind = "invalid_duration"

  def __init__(self, text: object, reason: str = "not a valid duration") -> None:
    self.text = text
    self.reason = reason
    super().__init__(f"Invalid duration {text!r}: {reason}")
