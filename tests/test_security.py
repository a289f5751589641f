"""
Tests for security module - InputSanitizer.
"""

import pytest

from tfmatrix.security import InputSanitizer, SecurityError


def test_sanitize_target_path_valid():
    """Test valid target paths are accepted."""
    valid_targets = [
        "app1",
        "dev/frontend",
        "prod/eu-west-1/network",
        "modules_shared/vpc",
        "app2/",
    ]

    for target in valid_targets:
        assert InputSanitizer.sanitize_target_path(target) == target


def test_sanitize_target_path_invalid():
    """Test invalid target paths raise SecurityError."""
    invalid_targets = [
        "",  # Empty
        "dev/app;rm",  # Shell metacharacter
        "../etc",  # Dot segments
        "app name",  # Space
        "app$HOME",  # Variable expansion
        "dev\\app",  # Backslash
        "café",  # Non-ASCII letter
    ]

    for target in invalid_targets:
        with pytest.raises(SecurityError):
            InputSanitizer.sanitize_target_path(target)


def test_sanitize_target_path_names_forbidden_chars():
    """Test the error message cites the offending characters."""
    with pytest.raises(SecurityError) as exc_info:
        InputSanitizer.sanitize_target_path("dev/app;rm")

    assert "dev/app;rm" in str(exc_info.value)
    assert '";"' in str(exc_info.value)


def test_sanitize_target_path_too_long():
    """Test that extremely long targets are rejected."""
    with pytest.raises(SecurityError):
        InputSanitizer.sanitize_target_path("a" * 2000)


def test_forbidden_target_chars():
    assert InputSanitizer.forbidden_target_chars("a;b|c") == {";", "|"}
    assert InputSanitizer.forbidden_target_chars("dev/app") == set()


def test_sanitize_revision_valid():
    """Test commit SHAs and ref names are accepted."""
    valid_revisions = [
        "3f2a9c1",
        "0123456789abcdef0123456789abcdef01234567",
        "main",
        "origin/main",
        "feature/new-vpc",
        "HEAD~1",
        "v1.2.3",
    ]

    for revision in valid_revisions:
        assert InputSanitizer.sanitize_revision(revision) == revision


def test_sanitize_revision_invalid():
    """Test option-like and metacharacter revisions are rejected."""
    invalid_revisions = [
        "",
        "--output=/tmp/x",
        "-p",
        "main;ls",
        "main ls",
        "main\n",
        "abc123\n--output=/tmp/x",
    ]

    for revision in invalid_revisions:
        with pytest.raises(SecurityError):
            InputSanitizer.sanitize_revision(revision)


def test_sanitize_actor():
    assert InputSanitizer.sanitize_actor("octo-cat") == "octo-cat"

    for actor in ["", "-octo", "octo cat", "octo;cat", "a" * 40]:
        with pytest.raises(SecurityError):
            InputSanitizer.sanitize_actor(actor)


def test_is_safe_command_arg():
    """Test command argument safety check."""
    assert InputSanitizer.is_safe_command_arg("-chdir=/tmp/app") is True
    assert InputSanitizer.is_safe_command_arg("bad\x00arg") is False
    assert InputSanitizer.is_safe_command_arg("a" * 10001) is False


def test_trailing_newline_rejected():
    """Test a trailing newline does not slip past the anchored patterns."""
    with pytest.raises(SecurityError):
        InputSanitizer.sanitize_target_path("dev/app\n")

    with pytest.raises(SecurityError):
        InputSanitizer.sanitize_actor("octocat\n")
