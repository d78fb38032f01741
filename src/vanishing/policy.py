from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import DuplicateRange, InvertedRange
from .units import MAX_BYTE_SIZE, RetentionDuration, format_byte_size, parse_byte_size, parse_duration

DEFAULT_RETENTION = RetentionDuration.from_seconds(60 * 60 * 24)

RawEntry = Tuple[Union[int, str], Union[int, str], str]


@dataclass(frozen=True, order=True)
class SizeRange:
  """Closed byte-size interval [lower, upper]; ordered by lower, then upper."""

  lower: int
  upper: int

  def __post_init__(self):
    if self.lower > self.upper:
      raise InvertedRange(self.lower, self.upper)

  @property
  def width(self) -> int:
    return self.upper - self.lower

  def contains(self, size: int) -> bool:
    return self.lower <= size <= self.upper

  def overlaps(self, other: "SizeRange") -> bool:
    return self.lower <= other.upper and other.lower <= self.upper

  def __str__(self) -> str:
    return f"{format_byte_size(self.lower)} ..= {format_byte_size(self.upper)}"


class SizeDurationPolicy(Mapping):
  """
  Immutable mapping from size range to retention duration.

  Iteration follows key order. Ranges are guaranteed distinct but may
  overlap; `lookup` resolves overlaps by picking the narrowest range.
  """

  def __init__(self, limits: Optional[Mapping] = None) -> None:
    items = list((limits or {}).items())
    for key, value in items:
      if not isinstance(key, SizeRange):
        raise TypeError(f"policy keys must be SizeRange, got {type(key).__name__}")
      if not isinstance(value, RetentionDuration):
        raise TypeError(f"policy values must be RetentionDuration, got {type(value).__name__}")
    self._limits = MappingProxyType(dict(sorted(items)))

  @classmethod
  def build(cls, entries: Iterable[RawEntry]) -> "SizeDurationPolicy":
    """
    Validate raw (lower, upper, duration_text) tuples into a policy.

    Entries are checked in input order and the first failure is raised;
    nothing is returned on failure.

    Raises:
      InvalidDuration: If a duration string cannot be parsed.
      InvertedRange: If an entry has lower > upper.
      DuplicateRange: If an identical (lower, upper) pair was already seen.
      InvalidByteSize: If a bound is not a valid byte size.
    """
    limits: Dict[SizeRange, RetentionDuration] = {}
    for lower, upper, duration_text in entries:
      duration = parse_duration(duration_text)
      size_range = SizeRange(parse_byte_size(lower), parse_byte_size(upper))
      if size_range in limits:
        raise DuplicateRange(size_range.lower, size_range.upper)
      limits[size_range] = duration
    return cls(limits)

  def __getitem__(self, key: SizeRange) -> RetentionDuration:
    return self._limits[key]

  def __iter__(self) -> Iterator[SizeRange]:
    return iter(self._limits)

  def __len__(self) -> int:
    return len(self._limits)

  def __repr__(self) -> str:
    body = ", ".join(f"({r.lower}, {r.upper}): {d}" for r, d in self._limits.items())
    return f"SizeDurationPolicy({{{body}}})"

  def matching(self, size: int) -> List[Tuple[SizeRange, RetentionDuration]]:
    """Every entry whose range contains `size`, in key order."""
    return [(r, d) for r, d in self._limits.items() if r.contains(size)]

  def lookup(self, size: int) -> Optional[RetentionDuration]:
    """
    Retention duration that applies to a file of `size` bytes.

    When several ranges match, the narrowest one wins; equal widths fall
    back to key order. Returns None if no range matches.
    """
    candidates = self.matching(size)
    if not candidates:
      return None
    _range, duration = min(candidates, key=lambda item: (item[0].width, item[0]))
    return duration

  def overlaps(self) -> List[Tuple[SizeRange, SizeRange]]:
    ranges: Sequence[SizeRange] = list(self._limits)
    found: List[Tuple[SizeRange, SizeRange]] = []
    for i, first in enumerate(ranges):
      for second in ranges[i + 1:]:
        if second.lower > first.upper:
          break
        found.append((first, second))
    return found

  def describe(self) -> str:
    if not self._limits:
      return "(no limits)"
    lines = []
    for size_range, duration in self._limits.items():
      lines.append(
        f"{size_range.lower:>20} ..= {size_range.upper:<20}  "
        f"[{size_range}]  -> {duration}"
      )
    return "\n".join(lines)


def default_policy() -> SizeDurationPolicy:
  """Policy used when no configuration exists: every size is kept for 24 hours."""
  return SizeDurationPolicy({SizeRange(0, MAX_BYTE_SIZE): DEFAULT_RETENTION})
