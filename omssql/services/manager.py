"""
Connection manager for SQL Server.

``ConnectionManager`` owns one pool handle and the last known server
status.  It runs statements through the driver, wraps every outcome in
a ``ResultEnvelope``, records it in the query history and shapes it
with one of the result formats.  No method raises on database trouble:
connection failures, statements sent while disconnected, statements
rejected by the server and bad format arguments all come back as
values, so callers must look at ``status``.

Example usage::

    manager = ConnectionManager(settings={'host': 'db.local', 'password': '...'})
    manager.open()
    names = manager.execute_query("SELECT id, name FROM users", 'valuesById', 'name')
    manager.close()
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional

from ..config.settings import normalize_settings, redact_settings
from ..core import formats
from ..core.formats import QueryFormat, Sanitizer
from ..core.history import QueryHistory
from ..core.response import error_code, error_lines, error_message, response_ko, response_ok
from ..core.result import Column, ResultEnvelope, to_sql_datetime
from ..core.sanitize import sanitize
from ..infra.db import mssql


class ConnectionManager:
    """Pool lifecycle, query history and result formatting for one database.

    Not safe for concurrent use; give each thread its own manager.
    """

    sanitize = staticmethod(sanitize)

    def __init__(self, settings: Optional[Mapping[str, Any]] = None, driver: Optional[mssql.DriverProtocol] = None) -> None:
        self._settings: Dict[str, Any] = normalize_settings(settings)
        self._driver = driver if driver is not None else mssql
        self._db: Optional[mssql.PoolProtocol] = None
        self._history = QueryHistory()
        self._server_status: Dict[str, Any] = response_ko('Not connected yet.')

    # -- lifecycle -----------------------------------------------------

    def open(
        self,
        timer: Any = None,
        timer_open: str = 'mssqlPoolOpen',
        timer_close: str = 'mssqlPoolClose',
        sql_error: bool = False,
    ) -> Dict[str, Any]:
        """Open a pool, closing the current one first.

        Args:
            timer: Optional object with ``step(name)`` and ``get_times()``
                (see ``omssql.core.timer.StepTimer``).
            timer_open: Step name recorded when opening.
            timer_close: Step name recorded when closing a previous pool.
            sql_error: Attach the driver exception to a failure response
                under ``sql``.

        Returns:
            The new server status.
        """
        if self._db is not None:
            self.close(timer=timer, timer_close=timer_close)
        if timer is not None:
            timer.step(timer_open)

        try:
            pool = self._driver.connect(copy.deepcopy(self._settings))
        except Exception as err:
            response = response_ko({'msg': error_message(err), 'code': error_code(err)})
            if sql_error:
                response['sql'] = err
            if timer is not None:
                response['times'] = timer.get_times()
            logging.warning('[ConnectionManager] Connection failed', extra={'server': self._settings.get('server'), 'error': response['error']['msg']})
            self._db = None
            self._server_status = response
            return self.get_status()

        self._db = pool
        self._server_status = response_ok('Connected successfully.')
        logging.info('[ConnectionManager] Connected', extra={'server': self._settings.get('server'), 'database': self._settings.get('database')})
        return self.get_status()

    def close(self, timer: Any = None, timer_close: str = 'mssqlPoolClose', **_: Any) -> Dict[str, Any]:
        """Close the pool.

        The stored status becomes a failure-shaped "Disconnected
        successfully." entry, while the caller gets a success response
        for the close operation itself.
        """
        if timer is not None:
            timer.step(timer_close)
        if self._db is None:
            return response_ok('Is already disconnected.')

        pool, self._db = self._db, None
        try:
            pool.close()
        except Exception as err:
            self._server_status = response_ko({'msg': error_message(err), 'code': error_code(err)})
            logging.warning('[ConnectionManager] Close failed', extra={'server': self._settings.get('server'), 'error': self._server_status['error']['msg']})
            return self.get_status()

        self._server_status = response_ko('Disconnected successfully.')
        logging.info('[ConnectionManager] Disconnected', extra={'server': self._settings.get('server')})
        return response_ok('Disconnected successfully.')

    # -- accessors -----------------------------------------------------

    def get_client(self) -> Any:
        return self._driver

    def get_db(self) -> Any:
        return self._db

    def get_info(self) -> Dict[str, Any]:
        """Settings with passwords masked."""
        return redact_settings(self._settings)

    def get_status(self) -> Dict[str, Any]:
        status = copy.deepcopy({key: value for key, value in self._server_status.items() if key != 'sql'})
        # the driver exception is handed back as is
        if 'sql' in self._server_status:
            status['sql'] = self._server_status['sql']
        return status

    @property
    def status(self) -> bool:
        return bool(self._server_status.get('status'))

    def get_last_query(self, offset: int = 0, raw: bool = False) -> Optional[ResultEnvelope]:
        return self._history.get(offset, raw)

    def get_first_query(self, offset: int = 0, raw: bool = False) -> Optional[ResultEnvelope]:
        return self._history.get_from_end(offset, raw)

    def get_all_queries(self, raw: bool = False) -> List[ResultEnvelope]:
        return self._history.get_all(raw)

    def get_affected_rows(self) -> int:
        last = self._history.last
        return last.count if last is not None else 0

    # -- queries -------------------------------------------------------

    def execute_query(
        self,
        sql: str,
        fmt: Any = QueryFormat.DEFAULT,
        value_key: Any = 0,
        value_id: Any = 0,
        sanitizer: Sanitizer = None,
    ) -> Any:
        """Run ``sql`` and return it shaped as ``fmt``.

        Returns:
            The formatted value.  A failed statement yields the envelope
            for the ``default`` format and ``False`` for any other; a bad
            ``fmt`` or non-callable ``sanitizer`` also yields ``False``
            and marks the recorded envelope as failed.
        """
        envelope = self._run(sql)

        if not envelope.status:
            return envelope if fmt == QueryFormat.DEFAULT else False

        usage_error = formats.validate(fmt, sanitizer, caller='ConnectionManager.execute_query')
        if usage_error is not None:
            envelope.fail(usage_error)
            logging.warning('[ConnectionManager] Bad format arguments', extra={'error': usage_error['msg']})
            return False

        return formats.project(envelope, fmt, value_key, value_id, sanitizer)

    def execute_query_once(
        self,
        sql: str,
        fmt: Any = QueryFormat.DEFAULT,
        value_key: Any = 0,
        value_id: Any = 0,
        sanitizer: Sanitizer = None,
    ) -> Dict[str, Any]:
        """Open, run one statement, close.

        Returns ``{'status': True, 'result': ...}`` or the first failure
        among opening, closing and the statement itself.
        """
        opened = self.open()
        if not opened['status']:
            return opened

        result = self.execute_query(sql, fmt, value_key, value_id, sanitizer)

        closed = self.close()
        if not closed['status']:
            return closed

        last = self._history.last
        if not last.status:
            return response_ko(copy.deepcopy(last.error))

        return response_ok({'result': result})

    def _run(self, sql: str) -> ResultEnvelope:
        envelope = ResultEnvelope(statement=sql)

        if not self.status:
            envelope.fail({'msg': 'Server is down', 'server_status': self.get_status()})
            self._history.push(envelope)
            return envelope

        logging.debug('[ConnectionManager] Executing', extra={'sql': sql})
        try:
            raw = self._db.query(sql)
        except Exception as err:
            envelope.fail({'msg': error_message(err), 'mssql': error_lines(err)})
            logging.warning('[ConnectionManager] Statement failed', extra={'sql': sql, 'error': envelope.error['msg']})
        else:
            envelope.columns = _columns(raw)
            envelope.rows = _rows(raw, envelope.columns)
            affected = raw.rows_affected[0] if raw.rows_affected else 0
            envelope.count = affected or 0
            envelope.status = True

        self._history.push(envelope)
        return envelope


def _columns(raw: Any) -> List[Column]:
    if not raw.columns:
        return []
    return [copy.copy(column) for column in raw.columns[0]]


def _rows(raw: Any, columns: List[Column]) -> List[Dict[str, Any]]:
    names = {column.index: column.name for column in columns}
    rows: List[Dict[str, Any]] = []
    for record in raw.recordset or []:
        rows.append({names.get(i): to_sql_datetime(value) for i, value in enumerate(record)})
    return rows
