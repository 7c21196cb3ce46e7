from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Mapping, Optional, Union

import pytest

from omssql.core.result import Column, ResultEnvelope
from omssql.infra.db.mssql import ConnectError, RawResult, RequestError


class FakePool:
    """Pool answering canned results keyed by SQL text."""

    def __init__(self, answers: Dict[str, Union[RawResult, Exception]]) -> None:
        self.answers = answers
        self.queries: List[str] = []
        self.closed = False

    def query(self, sql: str) -> RawResult:
        self.queries.append(sql)
        answer = self.answers.get(sql, RawResult(rows_affected=[0]))
        if isinstance(answer, Exception):
            raise answer
        return answer

    def close(self) -> None:
        self.closed = True


class FakeDriver:
    """Stands in for ``omssql.infra.db.mssql`` in manager tests."""

    def __init__(self, answers: Optional[Dict[str, Any]] = None, connect_error: Optional[Exception] = None) -> None:
        self.answers = answers or {}
        self.connect_error = connect_error
        self.settings: List[Mapping[str, Any]] = []
        self.pools: List[FakePool] = []

    def connect(self, settings: Mapping[str, Any]) -> FakePool:
        self.settings.append(settings)
        if self.connect_error is not None:
            raise self.connect_error
        pool = FakePool(self.answers)
        self.pools.append(pool)
        return pool


def select_result(names: List[str], records: List[tuple]) -> RawResult:
    columns = [Column(name=name, index=i, type=None) for i, name in enumerate(names)]
    return RawResult(columns=[columns], recordset=records, rows_affected=[len(records)])


USERS_SQL = "SELECT * FROM test_easy ORDER BY id ASC"
INSERT_SQL = "INSERT INTO test_easy ( name ) VALUES ( 'chacho' )"
BAD_SQL = "SELECT * FROMM test_easy"
DATES_SQL = "SELECT id, fecha, created FROM test_tools"


@pytest.fixture
def answers() -> Dict[str, Any]:
    return {
        USERS_SQL: select_result(["id", "name"], [(1, "chacho"), (2, "bar"), (4, "tio")]),
        INSERT_SQL: RawResult(rows_affected=[1]),
        BAD_SQL: RequestError("Incorrect syntax near 'FROMM'.", 102),
        DATES_SQL: select_result(
            ["id", "fecha", "created"],
            [(1, dt.date(2022, 5, 1), dt.datetime(2022, 5, 2, 13, 4, 5)), (2, None, None)],
        ),
    }


@pytest.fixture
def driver(answers) -> FakeDriver:
    return FakeDriver(answers)


@pytest.fixture
def failing_driver() -> FakeDriver:
    return FakeDriver(connect_error=ConnectError("Login failed for user 'chacho'.", 18456))


@pytest.fixture
def users() -> ResultEnvelope:
    return ResultEnvelope(
        statement=USERS_SQL,
        status=True,
        count=3,
        columns=[Column("id", 0), Column("name", 1)],
        rows=[{"id": 1, "name": "chacho"}, {"id": 2, "name": "bar"}, {"id": 4, "name": "tio"}],
    )
