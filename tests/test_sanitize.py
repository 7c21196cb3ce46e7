from __future__ import annotations

from decimal import Decimal

import pytest

from omssql import ConnectionManager, sanitize


@pytest.mark.parametrize(
    "value, expected",
    [
        ("chacho", "'chacho'"),
        ("'chacho'", "'''chacho'''"),
        ('"chacho"', "'\"chacho\"'"),
        ("' OR 1 = 1;", "''' OR 1 = 1;'"),
        ("it's", "'it''s'"),
        ("a\\b", "'a\\\\b'"),
        (5, "5"),
        ("5", "'5'"),
        (Decimal("1.50"), "1.50"),
        (None, "NULL"),
        ("NULL", "'NULL'"),
        (True, "1"),
        (False, "0"),
        ([1, 2, 3], "'[1,2,3]'"),
        ({"chacho": "loco", "tio": 1}, "'{\"chacho\":\"loco\",\"tio\":1}'"),
        ({"chACho": "' OR 1 = 1;"}, "'{\"chACho\":\"'' OR 1 = 1;\"}'"),
    ],
)
def test_sanitize(value, expected):
    assert sanitize(value) == expected


def test_sanitize_on_manager_class_and_instance():
    assert ConnectionManager.sanitize("chacho") == "'chacho'"
    assert ConnectionManager().sanitize("'chacho'") == "'''chacho'''"
