from __future__ import annotations

import pytest

from omssql.core import formats
from omssql.core.formats import ALLOWED_QUERY_FORMATS, QueryFormat, project, validate
from omssql.core.result import Column, ResultEnvelope


def test_allowed_formats_lists_every_tag():
    assert ALLOWED_QUERY_FORMATS == [
        "bool", "count", "value", "values", "valuesById",
        "array", "arrayById", "rowStrict", "row", "default",
    ]


def test_validate_rejects_unknown_format():
    error = validate("chacho", caller="ConnectionManager.execute_query")
    assert error["msg"] == "ConnectionManager.execute_query: format is not allowed: chacho"
    assert error["allowed_formats"] == ALLOWED_QUERY_FORMATS


def test_validate_rejects_non_callable_sanitizer():
    error = validate("bool", "chacho", caller="ConnectionManager.execute_query")
    assert error["msg"] == "ConnectionManager.execute_query: sanitizer must be a function, not a str."


def test_validate_accepts_enum_and_callable():
    assert validate(QueryFormat.ROW, str) is None
    assert validate("values") is None


@pytest.mark.parametrize("fmt", [f for f in ALLOWED_QUERY_FORMATS if f != "default"])
def test_failed_envelope_projects_to_false(fmt):
    failed = ResultEnvelope(statement="SELECT 1", status=False, error={"msg": "boom"})
    assert project(failed, fmt) is False


def test_failed_envelope_default_is_envelope():
    failed = ResultEnvelope(statement="SELECT 1", status=False, error={"msg": "boom"})
    assert project(failed, "default") is failed


def test_bool_and_count(users):
    assert project(users, "bool") is True
    assert project(users, "count") == 3
    empty = ResultEnvelope(statement="UPDATE t SET a = 1 WHERE 0 = 1", status=True, count=0)
    assert project(empty, "bool") is False
    assert project(users, "count", sanitizer=lambda v: v * 10) == 30


def test_value_default_column(users):
    assert project(users, "value") == 1


def test_value_named_and_positional(users):
    assert project(users, "value", "name") == "chacho"
    assert project(users, "value", 1) == "chacho"
    assert project(users, "value", "1") == "chacho"


def test_value_missing_column_and_no_rows(users):
    assert project(users, "value", "chacho") is None
    assert project(users, "value", 7) is None
    empty = ResultEnvelope(statement="SELECT 1 WHERE 0 = 1", status=True)
    assert project(empty, "value") is None


def test_value_with_sanitizer(users):
    assert project(users, "value", 0, 0, lambda v: {"rowId": v}) == {"rowId": 1}


def test_values(users):
    assert project(users, "values") == [1, 2, 4]
    assert project(users, "values", "name") == ["chacho", "bar", "tio"]
    assert project(users, "values", "chacho") == [None, None, None]


def test_values_by_id(users):
    assert project(users, "valuesById", "name") == {1: "chacho", 2: "bar", 4: "tio"}


def test_values_by_id_named_id(users):
    assert project(users, "valuesById", "id", "name") == {"chacho": 1, "bar": 2, "tio": 4}


def test_values_by_id_missing_value_column(users):
    assert project(users, "valuesById", "chacho", "name") == {"chacho": None, "bar": None, "tio": None}


def test_values_by_id_skips_rows_without_id(users):
    assert project(users, "valuesById", "id", "chacho") == {}


def test_values_by_id_last_duplicate_wins():
    envelope = ResultEnvelope(
        statement="SELECT grp, n FROM t",
        status=True,
        count=3,
        columns=[Column("grp", 0), Column("n", 1)],
        rows=[{"grp": "a", "n": 1}, {"grp": "b", "n": 2}, {"grp": "a", "n": 3}],
    )
    assert project(envelope, "valuesById", "n") == {"a": 3, "b": 2}


def test_values_by_id_without_column_metadata_uses_first_row():
    envelope = ResultEnvelope(
        statement="SELECT code, label FROM t",
        status=True,
        count=2,
        rows=[{"code": "x", "label": "X"}, {"code": "y", "label": "Y"}],
    )
    assert project(envelope, "valuesById", "label") == {"x": "X", "y": "Y"}


def test_array_is_independent_copy(users):
    rows = project(users, "array")
    assert rows == users.rows
    rows[0]["name"] = "changed"
    assert users.rows[0]["name"] == "chacho"


def test_array_with_sanitizer(users):
    assert project(users, "array", sanitizer=str) == [
        {"id": "1", "name": "chacho"},
        {"id": "2", "name": "bar"},
        {"id": "4", "name": "tio"},
    ]


def test_array_by_id(users):
    assert project(users, "arrayById") == {
        1: {"id": 1, "name": "chacho"},
        2: {"id": 2, "name": "bar"},
        4: {"id": 4, "name": "tio"},
    }
    assert project(users, "arrayById", "name") == {
        "chacho": {"id": 1, "name": "chacho"},
        "bar": {"id": 2, "name": "bar"},
        "tio": {"id": 4, "name": "tio"},
    }
    assert project(users, "arrayById", "chacho") == {}


def test_row(users):
    assert project(users, "row") == {"id": 1, "name": "chacho"}
    assert project(users, "row", 2) == {"id": 4, "name": "tio"}
    assert project(users, "row", "name") == {"id": 1, "name": "chacho"}


def test_row_out_of_range_is_empty(users):
    assert project(users, "row", 999) == {}
    assert project(users, "rowStrict", 999) == {}


def test_row_is_a_copy(users):
    row = project(users, "row")
    row["id"] = 100
    assert users.rows[0]["id"] == 1


def test_row_strict_drops_falsy_fields():
    envelope = ResultEnvelope(
        statement="SELECT * FROM test_easy WHERE id = 5",
        status=True,
        count=1,
        columns=[Column("id", 0), Column("name", 1), Column("enabled", 2), Column("fecha", 3)],
        rows=[{"id": 5, "name": "", "enabled": 0, "fecha": None}],
    )
    assert project(envelope, "row") == {"id": 5, "name": "", "enabled": 0, "fecha": None}
    assert project(envelope, "rowStrict") == {"id": 5}


def test_default_returns_envelope(users):
    assert project(users, "default") is users
    assert project(users, QueryFormat.DEFAULT) is users


def test_projection_never_mutates_envelope(users):
    before = users.clone()
    for fmt in ALLOWED_QUERY_FORMATS:
        project(users, fmt, "name", "id", str)
    assert users == before


def test_is_positional():
    assert formats.is_positional(0)
    assert formats.is_positional("2")
    assert not formats.is_positional(True)
    assert not formats.is_positional("name")
    assert not formats.is_positional("²")


def test_non_decimal_digit_keys_are_column_names(users):
    assert project(users, "value", "²") is None
    assert project(users, "row", "²") == {"id": 1, "name": "chacho"}
    assert project(users, "valuesById", "name", "²") == {}
