"""
Expose the loaded configuration as ``config``.

Importing from this module will load environment variables and
populate a singleton ``Config`` instance. Example:

    from omssql.config import config
    manager = ConnectionManager(settings=config.to_settings())
"""

from .env import config, Config, load_config  # noqa: F401
from .settings import normalize_settings, parse_connection_string, redact_settings  # noqa: F401
