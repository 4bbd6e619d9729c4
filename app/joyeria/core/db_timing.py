from __future__ import annotations

from contextvars import ContextVar, Token

# A mutable cell so that time recorded inside threadpool copies of the context
# is visible to the middleware that opened the timer.
_request_db_ms: ContextVar[list[float] | None] = ContextVar("request_db_ms", default=None)


def begin_request_timer() -> Token:
    return _request_db_ms.set([0.0])


def end_request_timer(token: Token) -> None:
    _request_db_ms.reset(token)


def record_query_time(elapsed_ms: float) -> None:
    cell = _request_db_ms.get()
    if cell is None:
        return
    cell[0] += elapsed_ms


def request_db_time_ms() -> float | None:
    cell = _request_db_ms.get()
    if cell is None:
        return None
    return cell[0]


def is_timing_request() -> bool:
    return _request_db_ms.get() is not None
