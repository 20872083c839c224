"""Classification of database failures into retry strategies."""

import errno
import socket
from collections.abc import Iterator
from enum import Enum

from asyncpg import exceptions as pg_exc
from sqlalchemy import exc as sa_exc


class FailureKind(str, Enum):
    """What the data-access layer should do about a failed operation."""

    POOL_EXHAUSTED = "pool_exhausted"   # backend reachable but saturated: wait, reuse client
    UNREACHABLE = "unreachable"         # stale socket / DNS / refused: rebuild client
    FATAL = "fatal"                     # bad query, constraint violation: do not retry


_POOL_MESSAGES = (
    "timed out fetching a new connection",
    "timed out fetching a connection",
    "connection pool",
    "queuepool limit",
    "too many connections",
    "too many clients",
    "remaining connection slots are reserved",
    "max client connections reached",
)
_UNREACHABLE_MESSAGES = (
    "can't reach database",
    "connection refused",
    "could not connect",
    "connection reset",
    "connection is closed",
    "connection was closed",
    "server closed the connection",
    "terminating connection",
    "the database system is starting up",
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo",
    "network is unreachable",
    "no route to host",
    "ssl syscall error",
)
_UNREACHABLE_CODES = frozenset({
    "ECONNREFUSED",
    "ECONNRESET",
    "ENOTFOUND",
    "EAI_AGAIN",
    "ETIMEDOUT",
    "EHOSTUNREACH",
    "ENETUNREACH",
    "P1001",  # can't reach database server
    "P1017",  # server closed the connection
})
_POOL_SQLSTATES = frozenset({"53300"})  # too_many_connections
_UNREACHABLE_SQLSTATE_PREFIXES = ("08", "57P")  # connection_exception, operator_intervention


def classify_failure(exc: BaseException) -> FailureKind:
    """Walk the exception chain and decide how to recover.

    SQLAlchemy wraps driver errors (``DBAPIError.orig``) and asyncpg errors
    are chained as causes, so every link is inspected.
    """
    chain = list(_exception_chain(exc))

    for candidate in chain:
        if _is_pool_exhaustion(candidate):
            return FailureKind.POOL_EXHAUSTED
    for candidate in chain:
        if _is_unreachable(candidate):
            return FailureKind.UNREACHABLE
    return FailureKind.FATAL


def _is_pool_exhaustion(exc: BaseException) -> bool:
    if isinstance(exc, (sa_exc.TimeoutError, pg_exc.TooManyConnectionsError)):
        return True
    if _sqlstate(exc) in _POOL_SQLSTATES:
        return True
    message = str(exc).lower()
    return any(fragment in message for fragment in _POOL_MESSAGES)


def _is_unreachable(exc: BaseException) -> bool:
    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(
        exc,
        (
            ConnectionError,
            TimeoutError,
            socket.gaierror,
            socket.herror,
            pg_exc.ConnectionDoesNotExistError,
            pg_exc.CannotConnectNowError,
            pg_exc.PostgresConnectionError,
        ),
    ):
        return True
    sqlstate = _sqlstate(exc)
    if sqlstate and sqlstate.startswith(_UNREACHABLE_SQLSTATE_PREFIXES):
        return True
    if _error_code(exc) in _UNREACHABLE_CODES:
        return True
    message = str(exc).lower()
    return any(fragment in message for fragment in _UNREACHABLE_MESSAGES)


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    pending: list[BaseException | None] = [exc]
    while pending:
        current = pending.pop(0)
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.append(getattr(current, "orig", None))
        pending.append(current.__cause__)
        pending.append(current.__context__)


def _sqlstate(exc: BaseException) -> str | None:
    value = getattr(exc, "sqlstate", None) or getattr(exc, "pgcode", None)
    return value if isinstance(value, str) else None


def _error_code(exc: BaseException) -> str | None:
    code = getattr(exc, "code", None)
    if isinstance(code, str):
        return code.upper()
    if isinstance(exc, OSError) and exc.errno is not None:
        return errno.errorcode.get(exc.errno)
    return None
