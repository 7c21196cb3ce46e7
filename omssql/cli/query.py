"""
Run a single statement from the command line.

Connection settings come from the environment (see
``omssql.config.env``).  The statement runs through
``ConnectionManager.execute_query_once``; the response is printed as
JSON and, with ``--out``, also written to a file.  Exit status is 1 when
the response reports a failure.

Example::

    python -m omssql.cli.query "SELECT id, name FROM users" --format valuesById --value-key name
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, List, Optional

from ..config import load_config
from ..core.formats import ALLOWED_QUERY_FORMATS
from ..infra.reporting.json_reporter import dumps, write_json
from ..services.manager import ConnectionManager


def _key(value: Optional[str]) -> Any:
    if value is None:
        return 0
    return int(value) if value.isdecimal() else value


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Run one SQL Server statement and print the formatted result')
    parser.add_argument('sql', type=str, help='Statement to execute')
    parser.add_argument('--format', type=str, default='default', choices=ALLOWED_QUERY_FORMATS, help='Result format')
    parser.add_argument('--value-key', type=str, help='Column name or position used by the format')
    parser.add_argument('--value-id', type=str, help='Column name or position used as key by valuesById')
    parser.add_argument('--out', type=str, help='Also write the JSON response to this file')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, manager: Optional[ConnectionManager] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    if manager is None:
        manager = ConnectionManager(settings=load_config().to_settings())
    logging.info('[cli/query] Parsed arguments', extra={'format': args.format, 'out': args.out})

    response = manager.execute_query_once(
        args.sql, args.format, _key(args.value_key), _key(args.value_id)
    )
    print(dumps(response))
    if args.out:
        write_json(args.out, response)
    return 0 if response.get('status') else 1


if __name__ == '__main__':
    try:
        sys.exit(main())
    except Exception as err:
        logging.error('Error executing cli/query', exc_info=err)
        sys.exit(2)
