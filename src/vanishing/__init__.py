"""
vanishing

Size-based file retention policy: maps byte-size ranges to the maximum age
a file in that range is kept before it becomes eligible for deletion.
"""

from .config_loader import LoadResult, default_config_path, load, try_load
from .errors import (
  ConfigIOError,
  DuplicateRange,
  InvalidByteSize,
  InvalidDuration,
  InvertedRange,
  ParseFailure,
  PolicyError,
)
from .policy import SizeDurationPolicy, SizeRange, default_policy
from .units import MAX_BYTE_SIZE, RetentionDuration, parse_byte_size, parse_duration

__all__ = [
  "ConfigIOError",
  "DuplicateRange",
  "InvalidByteSize",
  "InvalidDuration",
  "InvertedRange",
  "LoadResult",
  "MAX_BYTE_SIZE",
  "ParseFailure",
  "PolicyError",
  "RetentionDuration",
  "SizeDurationPolicy",
  "SizeRange",
  "default_config_path",
  "default_policy",
  "load",
  "parse_byte_size",
  "parse_duration",
  "try_load",
]
