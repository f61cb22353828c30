"""
Centralized configuration for the query preview service.

Values come from the environment with local defaults:
  - PGQ_CONN_STR        SQLAlchemy URL, decides the placeholder style of output
  - PGQ_SCHEMA          default schema for resources that do not name one
  - PGQ_MAPPINGS        JSON file with resource field mappings
  - PGQ_DEFAULT_LIMIT   page size when a request gives none
  - PGQ_MAX_CONDITIONS  cap on dynamic filter conditions per query
  - PGQ_DEBUG           log generated SQL
  - PGQ_LOG_LEVEL       logging level name
"""

import logging
import os


def _flag(name: str, default: str = '0') -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'y')


QUERY_CONFIG = {
    'conn_str': os.environ.get('PGQ_CONN_STR', 'postgresql+asyncpg://localhost/app'),
    'schema': os.environ.get('PGQ_SCHEMA', 'public'),
    'mappings_path': os.environ.get('PGQ_MAPPINGS', 'mappings.json'),
    'default_limit': int(os.environ.get('PGQ_DEFAULT_LIMIT', '10')),
    'max_conditions': int(os.environ.get('PGQ_MAX_CONDITIONS', '50')),
    'debug': _flag('PGQ_DEBUG'),
    'log_level': os.environ.get('PGQ_LOG_LEVEL', 'INFO').upper(),
}


# ─── Logging ─────────────────────────────────────────────────────────────────

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level=None):
    """Configure logging for the application."""
    logging.basicConfig(
        level=level or QUERY_CONFIG['log_level'],
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance."""
    return logging.getLogger(name)
