"""
Convenience layer over a SQL Server driver.

``ConnectionManager`` opens and closes the pool, wraps every statement
outcome in a ``ResultEnvelope``, keeps the history of executed
statements and reshapes results through the formats listed in
``ALLOWED_QUERY_FORMATS``.  See individual modules for further details.
"""

from .core.formats import ALLOWED_QUERY_FORMATS, QueryFormat  # noqa: F401
from .core.result import Column, ResultEnvelope  # noqa: F401
from .core.sanitize import sanitize  # noqa: F401
from .core.timer import StepTimer  # noqa: F401
from .services.manager import ConnectionManager  # noqa: F401

__version__ = "1.0.0"
