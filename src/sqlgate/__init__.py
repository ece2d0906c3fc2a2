"""
sqlgate - Statement execution gateway.

Renders statements (raw SQL, prepared, callable, or changes that expand
into statements) for a dialect, runs them against a borrowed DB-API
connection and returns typed results or one ``ExecutionError``.
"""

__version__ = "0.1.0"

# Re-export the public surface of sqlgate.core
from sqlgate.core import *  # noqa
