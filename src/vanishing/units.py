"""
Parsing of human-readable byte sizes and durations.

Byte sizes follow the common "10MB" / "1.5 GiB" notation (decimal units for
k/m/g/..., binary units for ki/mi/gi/...). Durations follow the compact
"24h" / "1h 30m" / "2days" notation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import List, Union

from .errors import InvalidByteSize, InvalidDuration

MAX_BYTE_SIZE = 2**64 - 1

_SIZE_RE = re.compile(r"^\s*([0-9]+(?:\.[0-9]*)?)\s*([a-zA-Z]*)\s*$")

_SIZE_UNITS = {
  "": 1,
  "b": 1,
  "k": 10**3,
  "kb": 10**3,
  "m": 10**6,
  "mb": 10**6,
  "g": 10**9,
  "gb": 10**9,
  "t": 10**12,
  "tb": 10**12,
  "p": 10**15,
  "pb": 10**15,
  "e": 10**18,
  "eb": 10**18,
  "ki": 2**10,
  "kib": 2**10,
  "mi": 2**20,
  "mib": 2**20,
  "gi": 2**30,
  "gib": 2**30,
  "ti": 2**40,
  "tib": 2**40,
  "pi": 2**50,
  "pib": 2**50,
  "ei": 2**60,
  "eib": 2**60,
}

_DISPLAY_UNITS = [("EB", 10**18), ("PB", 10**15), ("TB", 10**12), ("GB", 10**9), ("MB", 10**6), ("KB", 10**3)]


def parse_byte_size(value: Union[int, str]) -> int:
  """
  Parse a byte-size bound into a whole number of bytes.

  Accepts non-negative integers and strings such as "512", "10MB", "1.5 GiB".
  Fractional byte counts are truncated.

  Raises:
    InvalidByteSize: If the value is malformed or outside [0, MAX_BYTE_SIZE].
  """
  if isinstance(value, bool):
    raise InvalidByteSize(value, "expected an integer or a size string")

  if isinstance(value, int):
    size = value
  elif isinstance(value, str):
    match = _SIZE_RE.match(value)
    if not match:
      raise InvalidByteSize(value)
    number, unit = match.groups()
    multiplier = _SIZE_UNITS.get(unit.lower())
    if multiplier is None:
      raise InvalidByteSize(value, f"unknown unit '{unit}'")
    try:
      size = int(Decimal(number) * multiplier)
    except InvalidOperation as exc:
      raise InvalidByteSize(value) from exc
  else:
    raise InvalidByteSize(value, "expected an integer or a size string")

  if size < 0:
    raise InvalidByteSize(value, "must not be negative")
  if size > MAX_BYTE_SIZE:
    raise InvalidByteSize(value, f"exceeds the maximum of {MAX_BYTE_SIZE} bytes")
  return size


def format_byte_size(size: int) -> str:
  for suffix, factor in _DISPLAY_UNITS:
    if size >= factor:
      return f"{size / factor:.1f} {suffix}"
  return f"{size} B"


_NANOS_PER_SECOND = 1_000_000_000

# Case-sensitive: "m" is minutes, "M" is months.
_DURATION_UNITS = {
  "nanos": 1,
  "nsec": 1,
  "ns": 1,
  "micros": 1_000,
  "usec": 1_000,
  "us": 1_000,
  "millis": 1_000_000,
  "msec": 1_000_000,
  "ms": 1_000_000,
  "seconds": _NANOS_PER_SECOND,
  "second": _NANOS_PER_SECOND,
  "secs": _NANOS_PER_SECOND,
  "sec": _NANOS_PER_SECOND,
  "s": _NANOS_PER_SECOND,
  "minutes": 60 * _NANOS_PER_SECOND,
  "minute": 60 * _NANOS_PER_SECOND,
  "min": 60 * _NANOS_PER_SECOND,
  "mins": 60 * _NANOS_PER_SECOND,
  "m": 60 * _NANOS_PER_SECOND,
  "hours": 3_600 * _NANOS_PER_SECOND,
  "hour": 3_600 * _NANOS_PER_SECOND,
  "hr": 3_600 * _NANOS_PER_SECOND,
  "hrs": 3_600 * _NANOS_PER_SECOND,
  "h": 3_600 * _NANOS_PER_SECOND,
  "days": 86_400 * _NANOS_PER_SECOND,
  "day": 86_400 * _NANOS_PER_SECOND,
  "d": 86_400 * _NANOS_PER_SECOND,
  "weeks": 604_800 * _NANOS_PER_SECOND,
  "week": 604_800 * _NANOS_PER_SECOND,
  "w": 604_800 * _NANOS_PER_SECOND,
  "months": 2_630_016 * _NANOS_PER_SECOND,
  "month": 2_630_016 * _NANOS_PER_SECOND,
  "M": 2_630_016 * _NANOS_PER_SECOND,
  "years": 31_557_600 * _NANOS_PER_SECOND,
  "year": 31_557_600 * _NANOS_PER_SECOND,
  "y": 31_557_600 * _NANOS_PER_SECOND,
}

# Largest span representable as unsigned 64-bit seconds plus a sub-second part.
MAX_DURATION_NANOS = (2**64 - 1) * _NANOS_PER_SECOND + (_NANOS_PER_SECOND - 1)

_COMPONENT_RE = re.compile(r"\s*([0-9]+)\s*([a-zA-Z]+)")

_TIMEDELTA_MAX_MICROS = (timedelta.max.days * 86_400 + timedelta.max.seconds) * 1_000_000 + timedelta.max.microseconds


@dataclass(frozen=True, order=True)
class RetentionDuration:
  """A non-negative span of time, stored as whole nanoseconds."""

  nanoseconds: int

  def __post_init__(self):
    if self.nanoseconds < 0:
      raise InvalidDuration(self.nanoseconds, "must not be negative")

  @classmethod
  def from_seconds(cls, seconds: int) -> "RetentionDuration":
    return cls(nanoseconds=seconds * _NANOS_PER_SECOND)

  def total_seconds(self) -> float:
    return self.nanoseconds / _NANOS_PER_SECOND

  def to_timedelta(self) -> timedelta:
    # timedelta resolution is one microsecond; sub-microsecond parts are dropped.
    # Spans beyond timedelta.max (about 2.7 million years) saturate.
    micros = self.nanoseconds // 1_000
    if micros >= _TIMEDELTA_MAX_MICROS:
      return timedelta.max
    return timedelta(microseconds=micros)

  def __str__(self) -> str:
    if self.nanoseconds == 0:
      return "0s"

    seconds, nanos = divmod(self.nanoseconds, _NANOS_PER_SECOND)
    years, seconds = divmod(seconds, 31_557_600)
    months, seconds = divmod(seconds, 2_630_016)
    days, seconds = divmod(seconds, 86_400)
    hours, seconds = divmod(seconds, 3_600)
    minutes, seconds = divmod(seconds, 60)
    millis, nanos = divmod(nanos, 1_000_000)
    micros, nanos = divmod(nanos, 1_000)

    parts: List[str] = []
    for amount, singular, plural in (
      (years, "year", "years"),
      (months, "month", "months"),
      (days, "day", "days"),
    ):
      if amount:
        parts.append(f"{amount}{singular if amount == 1 else plural}")
    for amount, suffix in (
      (hours, "h"),
      (minutes, "m"),
      (seconds, "s"),
      (millis, "ms"),
      (micros, "us"),
      (nanos, "ns"),
    ):
      if amount:
        parts.append(f"{amount}{suffix}")
    return " ".join(parts)


def parse_duration(text: str) -> RetentionDuration:
  """
  Parse a duration such as "24h", "30m", "1h 30m" or "2days".

  Components are summed; each must carry a unit.

  Raises:
    InvalidDuration: If the text is empty, has a number without a unit,
      uses an unknown unit, or exceeds MAX_DURATION_NANOS.
  """
  if not isinstance(text, str):
    raise InvalidDuration(text, "expected a string")
  if not text.strip():
    raise InvalidDuration(text, "value was empty")

  total = 0
  pos = 0
  end = len(text.rstrip())
  while pos < end:
    match = _COMPONENT_RE.match(text, pos)
    if not match:
      raise InvalidDuration(text, f"expected a number followed by a unit at position {pos}")
    number, unit = match.groups()
    factor = _DURATION_UNITS.get(unit)
    if factor is None:
      raise InvalidDuration(text, f"unknown time unit '{unit}'")
    total += int(number) * factor
    if total > MAX_DURATION_NANOS:
      raise InvalidDuration(text, "number is too large")
    pos = match.end()

  return RetentionDuration(nanoseconds=total)
