"""Tests for loading the retention policy from a TOML file."""

import logging
import sys
from pathlib import Path

import pytest

from vanishing.config_loader import (
  SOURCE_DEFAULT,
  SOURCE_FILE,
  LoadResult,
  default_config_path,
  load,
  parse_document,
  try_load,
)
from vanishing.errors import (
  ConfigIOError,
  DuplicateRange,
  InvalidDuration,
  InvertedRange,
  ParseFailure,
)
from vanishing.policy import SizeRange, default_policy
from vanishing.units import MAX_BYTE_SIZE, parse_duration

VALID_CONFIG = """
limits = [
  [0, "10MB", "30days"],
  ["10MB", "1GB", "1week"],
  ["1GB", "18446744073709551615", "24h"],
]
"""


def write_config(directory: Path, contents: str) -> Path:
  path = directory / "config.toml"
  path.write_text(contents, encoding="utf-8")
  return path


class TestMissingFile:
  """A missing config file selects the default policy."""

  def test_load_returns_default_policy(self, tmp_path):
    """Test that a missing file yields the default policy."""
    assert load(tmp_path / "missing.toml") == default_policy()

  def test_try_load_reports_default_source(self, tmp_path):
    """Test that try_load marks a fallback policy as coming from the default."""
    result = try_load(tmp_path / "missing.toml")
    assert result.ok
    assert result.source == SOURCE_DEFAULT
    assert result.policy == default_policy()
    assert result.error is None

  def test_fallback_is_logged_at_debug(self, tmp_path, caplog):
    with caplog.at_level(logging.DEBUG, logger="vanishing.config_loader"):
      load(tmp_path / "missing.toml")
    assert "Falling back to default" in caplog.text


class TestValidFile:
  def test_round_trip(self, tmp_path):
    """Test that every configured entry is retrievable with its duration."""
    policy = load(write_config(tmp_path, VALID_CONFIG))
    assert len(policy) == 3
    assert policy[SizeRange(0, 10_000_000)] == parse_duration("30days")
    assert policy[SizeRange(10_000_000, 1_000_000_000)] == parse_duration("1week")
    assert policy[SizeRange(1_000_000_000, MAX_BYTE_SIZE)] == parse_duration("24h")

  def test_unwrap_without_policy_or_error_raises(self, tmp_path):
    """Test that an empty LoadResult refuses to unwrap even under python -O."""
    result = LoadResult(path=tmp_path / "config.toml")
    with pytest.raises(ValueError, match="neither a policy nor an error"):
      result.unwrap()

  def test_try_load_reports_file_source(self, tmp_path):
    result = try_load(write_config(tmp_path, VALID_CONFIG))
    assert result.ok
    assert result.source == SOURCE_FILE
    assert len(result.unwrap()) == 3

  def test_accepts_string_path(self, tmp_path):
    path = write_config(tmp_path, VALID_CONFIG)
    assert load(str(path)) == load(path)

  def test_empty_limits_list(self, tmp_path):
    policy = load(write_config(tmp_path, "limits = []\n"))
    assert len(policy) == 0

  def test_overlap_is_accepted_with_warning(self, tmp_path, caplog):
    """Test that overlapping ranges load but are logged as a warning."""
    path = write_config(tmp_path, 'limits = [[0, 100, "1h"], [50, 150, "2h"]]\n')
    with caplog.at_level(logging.WARNING, logger="vanishing.config_loader"):
      policy = load(path)
    assert len(policy) == 2
    assert "overlap" in caplog.text


class TestParseFailures:
  """Structural problems surface as ParseFailure."""

  @pytest.mark.parametrize(
    "contents",
    [
      "limits = [[0, 10, \"1h\"]",
      "not toml at all",
      "",
      "other = 1\n",
      "limits = [[0, 10, \"1h\"]]\nextra = true\n",
      "limits = [[0, 10]]\n",
      "limits = [[0, 10, \"1h\", \"2h\"]]\n",
      "limits = [[0, 10, 5]]\n",
      "limits = [[1.5, 10, \"1h\"]]\n",
      "limits = \"0-10:1h\"\n",
    ],
  )
  def test_malformed_documents(self, tmp_path, contents):
    """Test that syntax and shape errors raise ParseFailure."""
    with pytest.raises(ParseFailure):
      load(write_config(tmp_path, contents))

  def test_bad_byte_size_names_the_entry(self, tmp_path):
    """Test that an unparseable bound reports the offending entry index."""
    path = write_config(tmp_path, 'limits = [[0, 10, "1h"], ["ten", 20, "1h"]]\n')
    with pytest.raises(ParseFailure, match=r"limits\[1\]"):
      load(path)

  def test_negative_size_is_rejected(self):
    with pytest.raises(ParseFailure, match="must not be negative"):
      parse_document('limits = [[-1, 10, "1h"]]\n')

  def test_size_above_maximum_is_rejected(self):
    with pytest.raises(ParseFailure, match="exceeds the maximum"):
      parse_document('limits = [[0, "18446744073709551616", "1h"]]\n')

  def test_bounds_resolve_to_integers(self):
    """Test that size literals are resolved to byte counts during parsing."""
    assert parse_document('limits = [["1KiB", "2KB", "1h"]]\n') == [(1024, 2000, "1h")]

  def test_message_is_descriptive(self, tmp_path):
    with pytest.raises(ParseFailure, match="limits"):
      load(write_config(tmp_path, "other = 1\n"))


class TestSemanticFailures:
  """Validation errors from the policy propagate unchanged."""

  def test_inverted_range(self, tmp_path):
    with pytest.raises(InvertedRange):
      load(write_config(tmp_path, 'limits = [["10MB", "1MB", "1h"]]\n'))

  def test_duplicate_range(self, tmp_path):
    path = write_config(tmp_path, 'limits = [[0, "1KB", "1h"], [0, 1000, "2h"]]\n')
    with pytest.raises(DuplicateRange):
      load(path)

  def test_invalid_duration(self, tmp_path):
    with pytest.raises(InvalidDuration):
      load(write_config(tmp_path, 'limits = [[0, 10, "forever"]]\n'))

  def test_try_load_returns_error_instead_of_raising(self, tmp_path):
    """Test that try_load carries the error instead of raising it."""
    result = try_load(write_config(tmp_path, 'limits = [[100, 50, "1h"]]\n'))
    assert not result.ok
    assert result.policy is None
    assert result.source is None
    assert isinstance(result.error, InvertedRange)
    with pytest.raises(InvertedRange):
      result.unwrap()


class TestIOFailures:
  def test_directory_is_not_readable_as_config(self, tmp_path):
    """Test that a directory at the config path is an I/O failure, not a fallback."""
    with pytest.raises(ConfigIOError) as exc_info:
      load(tmp_path)
    assert isinstance(exc_info.value.cause, OSError)

  def test_permission_error_is_wrapped(self, tmp_path, monkeypatch):
    """Test that read errors other than not-found are wrapped in ConfigIOError."""
    path = write_config(tmp_path, VALID_CONFIG)

    def deny(self, *args, **kwargs):
      raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(Path, "read_text", deny)
    with pytest.raises(ConfigIOError, match="Permission denied") as exc_info:
      load(path)
    assert isinstance(exc_info.value.__cause__, PermissionError)

  def test_invalid_utf8_is_an_io_failure(self, tmp_path):
    path = tmp_path / "config.toml"
    path.write_bytes(b"limits = [[0, 10, \"\xff\"]]\n")
    result = try_load(path)
    assert isinstance(result.error, ConfigIOError)


class TestDefaultConfigPath:
  """Path resolution for each platform branch, forced through sys.platform."""

  @pytest.fixture(autouse=True)
  def clean_env(self, monkeypatch):
    monkeypatch.delenv("VANISHING_CONFIG", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("APPDATA", raising=False)

  @staticmethod
  def fake_home(monkeypatch, home):
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))

  @staticmethod
  def no_home(monkeypatch):
    def fail(cls):
      raise RuntimeError("Could not determine home directory.")

    monkeypatch.setattr(Path, "home", classmethod(fail))

  def test_env_override(self, monkeypatch, tmp_path):
    """Test that VANISHING_CONFIG replaces the whole path."""
    monkeypatch.setenv("VANISHING_CONFIG", str(tmp_path / "custom.toml"))
    assert default_config_path() == tmp_path / "custom.toml"

  def test_xdg_config_home(self, monkeypatch, tmp_path):
    """Test that an absolute XDG_CONFIG_HOME is used on Linux."""
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_config_path() == tmp_path / "vanishing" / "config.toml"

  def test_relative_xdg_falls_back_to_dot_config(self, monkeypatch, tmp_path):
    """Test that a relative XDG_CONFIG_HOME is ignored in favour of ~/.config."""
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", "relative/dir")
    self.fake_home(monkeypatch, tmp_path)
    assert default_config_path() == tmp_path / ".config" / "vanishing" / "config.toml"

  def test_macos_uses_application_support(self, monkeypatch, tmp_path):
    """Test that macOS resolves under ~/Library/Application Support, ignoring XDG."""
    monkeypatch.setattr(sys, "platform", "darwin")
    monkeypatch.setenv("XDG_CONFIG_HOME", "/ignored")
    self.fake_home(monkeypatch, tmp_path)
    expected = tmp_path / "Library" / "Application Support" / "vanishing" / "config.toml"
    assert default_config_path() == expected

  def test_windows_uses_appdata(self, monkeypatch, tmp_path):
    """Test that Windows resolves under %APPDATA%."""
    monkeypatch.setattr(sys, "platform", "win32")
    monkeypatch.setenv("APPDATA", str(tmp_path))
    assert default_config_path() == tmp_path / "vanishing" / "config.toml"

  def test_windows_without_appdata_is_an_io_failure(self, monkeypatch):
    """Test that a missing APPDATA raises ConfigIOError."""
    monkeypatch.setattr(sys, "platform", "win32")
    with pytest.raises(ConfigIOError, match="APPDATA is not set") as exc_info:
      default_config_path()
    assert exc_info.value.path is None
    assert isinstance(exc_info.value.__cause__, RuntimeError)

  @pytest.mark.parametrize("platform", ["linux", "darwin"])
  def test_missing_home_is_an_io_failure(self, monkeypatch, platform):
    """Test that an undeterminable home directory raises ConfigIOError."""
    monkeypatch.setattr(sys, "platform", platform)
    self.no_home(monkeypatch)
    with pytest.raises(ConfigIOError, match="Failed locating config dir"):
      default_config_path()

  def test_override_skips_home_lookup(self, monkeypatch, tmp_path):
    """Test that VANISHING_CONFIG works even when no home directory exists."""
    self.no_home(monkeypatch)
    monkeypatch.setenv("VANISHING_CONFIG", str(tmp_path / "custom.toml"))
    assert default_config_path() == tmp_path / "custom.toml"
