"""
Uniform response dictionaries.

Successful operations answer ``{'status': True, 'msg': ...}`` (or the
given payload merged in); failures answer
``{'status': False, 'error': {'msg': ..., ...}}``.  The helpers here
also reduce driver exceptions to a single greppable line.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union


Payload = Union[str, Dict[str, Any], None]


def response_ok(data: Payload = None) -> Dict[str, Any]:
    """Build a success response from a message or a payload mapping."""
    response: Dict[str, Any] = {"status": True}
    if isinstance(data, dict):
        response.update(data)
    elif data is not None:
        response["msg"] = data
    return response


def response_ko(error: Payload = None) -> Dict[str, Any]:
    """Build a failure response from a message or an error mapping.

    Keys of an error mapping whose value is ``None`` are dropped, so an
    absent driver code does not show up as ``'code': None``.
    """
    if isinstance(error, dict):
        detail = {k: v for k, v in error.items() if v is not None}
    else:
        detail = {"msg": error if error is not None else ""}
    return {"status": False, "error": detail}


def error_lines(err: BaseException) -> List[str]:
    return f"{type(err).__name__}: {err}".split("\r\n")


def error_message(err: BaseException) -> str:
    """First line of the rendered exception, newlines collapsed to spaces."""
    return error_lines(err)[0].replace("\n", " ")


def error_code(err: BaseException) -> Optional[Any]:
    return getattr(err, "code", None)
