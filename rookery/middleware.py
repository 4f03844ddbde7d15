"""Requests, responses and the per-request contexts of middleware chains.

A middleware is any object with ``before_handle`` and ``after_handle``
methods taking ``(request, response, context)`` and optionally a fourth
argument, the whole :class:`MiddlewareContext`. Its class attribute
``context`` is called to create its per-request context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Callable, Iterable, Sequence

from .headers import HeaderMap

_CO_VARARGS = 0x04


@dataclass
class Request:
    """An incoming HTTP request."""

    method: str = "GET"
    url: str = "/"
    raw_url: str = ""
    headers: HeaderMap = field(default_factory=HeaderMap)
    body: str = ""
    http_version: tuple[int, int] = (1, 1)


@dataclass
class Response:
    """An outgoing HTTP response."""

    code: int = 200
    body: str = ""
    headers: HeaderMap = field(default_factory=HeaderMap)
    completed: bool = False

    def add_header(self, key: str, value: str) -> None:
        """Add a header value, keeping any existing values for ``key``."""
        self.headers.add(key, value)

    def end(self) -> None:
        """Mark the response as finished."""
        self.completed = True


class MiddlewareContext:
    """Per-request contexts of a middleware chain, looked up by middleware type."""

    def __init__(self, middlewares: Iterable[Any]) -> None:
        self._contexts: dict[type, Any] = {}
        for middleware in middlewares:
            factory = getattr(middleware, "context", SimpleNamespace)
            self._contexts[type(middleware)] = factory()

    def get(self, middleware_type: type) -> Any:
        """Return the context belonging to ``middleware_type``."""
        try:
            return self._contexts[middleware_type]
        except KeyError:
            raise KeyError(
                f"no middleware of type {middleware_type.__name__} in this chain"
            ) from None


def _wants_all_contexts(method: Callable[..., Any]) -> bool:
    function = getattr(method, "__func__", method)
    code = getattr(function, "__code__", None)
    if code is None:
        return False
    if code.co_flags & _CO_VARARGS:
        return True
    positional = code.co_argcount
    if hasattr(method, "__self__"):
        positional -= 1
    return positional >= 4


def _call(method: Callable[..., Any], request: Request, response: Response,
          context: MiddlewareContext, own: Any) -> None:
    if _wants_all_contexts(method):
        method(request, response, own, context)
    else:
        method(request, response, own)


def run_before(middlewares: Sequence[Any], request: Request, response: Response,
               context: MiddlewareContext) -> list[Any]:
    """Call ``before_handle`` in order, stopping once the response is ended.

    Returns the middlewares that were entered, for :func:`run_after`.
    """
    entered = []
    for middleware in middlewares:
        entered.append(middleware)
        _call(middleware.before_handle, request, response, context, context.get(type(middleware)))
        if response.completed:
            break
    return entered


def run_after(middlewares: Sequence[Any], request: Request, response: Response,
              context: MiddlewareContext) -> None:
    """Call ``after_handle`` on ``middlewares`` in reverse order."""
    for middleware in reversed(middlewares):
        _call(middleware.after_handle, request, response, context, context.get(type(middleware)))