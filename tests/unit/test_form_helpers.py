"""
Unit tests for form value helpers.
"""

import pytest

from uploader.common.errors import InvalidIdentifier
from uploader.ingest.orchestrator import is_checked, parse_identifier


@pytest.mark.parametrize("value,expected", [
    ("1", True),
    ("on", True),
    ("yes", True),
    (True, True),
    (1, True),
    ("", False),
    ("0", False),
    ("false", False),
    ("Off", False),
    (" no ", False),
    (None, False),
    (0, False),
])
def test_is_checked(value, expected):
    assert is_checked(value) is expected


@pytest.mark.parametrize("value,expected", [
    ("3", 3),
    (" 42 ", 42),
    (7, 7),
    ("007", 7),
])
def test_parse_identifier(value, expected):
    assert parse_identifier(value, "photo") == expected


@pytest.mark.parametrize("value", ["", "abc", "3;DROP TABLE uploads", "-1", "1.5", None, True])
def test_parse_identifier_rejects(value):
    with pytest.raises(InvalidIdentifier):
        parse_identifier(value, "photo")
