"""sqlgate core — statement execution gateway.

Public surface::

    from sqlgate.core import (
        StatementExecutor, SqlOutputExecutor,
        RawSqlStatement, PreparedSqlStatement, CallableSqlStatement, ChangeStatement,
        ExecutionError, ErrorKind, QueryResult, UpdateResult,
        get_dialect, create_connection, create_executor,
    )
"""

from sqlgate.core.connection import (
    ConnectionInfo,
    DbapiConnection,
    OfflineConnection,
    create_connection,
)
from sqlgate.core.dialect import Dialect, get_dialect, register_dialect
from sqlgate.core.errors import ErrorContext, ErrorKind, ExecutionError
from sqlgate.core.executor import ExecutionShape, PreparedStatementFactory, StatementExecutor
from sqlgate.core.factory import create_executor
from sqlgate.core.output import SqlOutputExecutor
from sqlgate.core.renderer import StatementRenderer, render
from sqlgate.core.results import QueryResult, UpdateResult
from sqlgate.core.statements import (
    CallableSqlStatement,
    Change,
    ChangeStatement,
    PreparedSqlStatement,
    RawSqlStatement,
    SimpleChange,
    SqlStatement,
)
from sqlgate.core.visitors import (
    AppendSqlVisitor,
    CallableSqlVisitor,
    PrependSqlVisitor,
    RegExpReplaceSqlVisitor,
    ReplaceSqlVisitor,
    SqlVisitor,
)

__all__ = [
    # Executors
    "StatementExecutor",
    "SqlOutputExecutor",
    "ExecutionShape",
    "PreparedStatementFactory",
    "create_executor",
    # Statements
    "SqlStatement",
    "RawSqlStatement",
    "PreparedSqlStatement",
    "CallableSqlStatement",
    "ChangeStatement",
    "Change",
    "SimpleChange",
    # Rendering
    "StatementRenderer",
    "render",
    "SqlVisitor",
    "AppendSqlVisitor",
    "PrependSqlVisitor",
    "ReplaceSqlVisitor",
    "RegExpReplaceSqlVisitor",
    "CallableSqlVisitor",
    # Results / errors
    "QueryResult",
    "UpdateResult",
    "ExecutionError",
    "ErrorKind",
    "ErrorContext",
    # Dialects / connections
    "Dialect",
    "get_dialect",
    "register_dialect",
    "DbapiConnection",
    "OfflineConnection",
    "ConnectionInfo",
    "create_connection",
]
