"""
Driver-independent pieces: result envelopes, query history, result
formats, literal sanitising and response helpers.
"""

from .formats import ALLOWED_QUERY_FORMATS, QueryFormat, project, validate  # noqa: F401
from .history import QueryHistory  # noqa: F401
from .response import response_ko, response_ok  # noqa: F401
from .result import Column, ResultEnvelope  # noqa: F401
from .sanitize import sanitize  # noqa: F401
