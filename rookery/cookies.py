"""Cookie parsing from request headers and ``Set-Cookie`` generation."""

from __future__ import annotations

import time as _time
from datetime import datetime
from enum import Enum
from typing import Any

from .middleware import Request, Response

_DIVIDER = "; "
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class SameSitePolicy(Enum):
    """Values of the ``SameSite`` cookie attribute."""

    STRICT = "Strict"
    LAX = "Lax"
    NONE = "None"


def _http_date(moment: datetime) -> str:
    return (
        f"{_WEEKDAYS[moment.weekday()]}, {moment.day:02d} {_MONTHS[moment.month - 1]} "
        f"{moment.year:04d} {moment.hour:02d}:{moment.minute:02d}:{moment.second:02d} GMT"
    )


class Cookie:
    """A cookie to send to the client, with its optional attributes.

    The attribute methods return the cookie itself so calls can be chained.
    """

    def __init__(self, key: str, value: Any) -> None:
        self.key = key
        self.value = str(value)
        self._max_age: int | None = None
        self._domain = ""
        self._path = ""
        self._secure = False
        self._httponly = False
        self._expires_at: datetime | None = None
        self._same_site: SameSitePolicy | None = None

    def dump(self) -> str:
        """Format the cookie as the value of a ``Set-Cookie`` header."""
        pieces = [f"{self.key}={self.value or chr(34) * 2}"]
        if self._domain:
            pieces.append(f"Domain={self._domain}")
        if self._path:
            pieces.append(f"Path={self._path}")
        if self._secure:
            pieces.append("Secure")
        if self._httponly:
            pieces.append("HttpOnly")
        if self._expires_at is not None:
            pieces.append(f"Expires={_http_date(self._expires_at)}")
        if self._max_age is not None:
            pieces.append(f"Max-Age={self._max_age}")
        if self._same_site is not None:
            pieces.append(f"SameSite={self._same_site.value}")
        return _DIVIDER.join(pieces)

    def expires(self, time: datetime | _time.struct_time) -> Cookie:
        """Set the ``Expires`` attribute; the time is taken as GMT."""
        if isinstance(time, datetime):
            self._expires_at = time
        elif isinstance(time, _time.struct_time):
            self._expires_at = datetime(*time[:6])
        else:
            raise TypeError("expires() takes a datetime or a time.struct_time")
        return self

    def max_age(self, seconds: int) -> Cookie:
        """Set the ``Max-Age`` attribute."""
        self._max_age = int(seconds)
        return self

    def domain(self, name: str) -> Cookie:
        """Set the ``Domain`` attribute."""
        self._domain = name
        return self

    def path(self, path: str) -> Cookie:
        """Set the ``Path`` attribute."""
        self._path = path
        return self

    def secure(self) -> Cookie:
        """Add the ``Secure`` attribute."""
        self._secure = True
        return self

    def httponly(self) -> Cookie:
        """Add the ``HttpOnly`` attribute."""
        self._httponly = True
        return self

    def same_site(self, policy: SameSitePolicy) -> Cookie:
        """Set the ``SameSite`` attribute."""
        self._same_site = SameSitePolicy(policy)
        return self

    def __repr__(self) -> str:
        return f"Cookie({self.dump()!r})"


class CookieContext:
    """Per-request cookie state: cookies received and cookies to send."""

    def __init__(self) -> None:
        self.jar: dict[str, str] = {}
        self.cookies_to_add: list[Cookie] = []

    def get_cookie(self, key: str) -> str:
        """Return the received cookie ``key``, or an empty string."""
        return self.jar.get(key, "")

    def set_cookie(self, key: str, value: Any) -> Cookie:
        """Queue a cookie for the response and return it for further settings."""
        cookie = Cookie(key, value)
        self.cookies_to_add.append(cookie)
        return cookie


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value; the first occurrence of a name wins."""
    jar: dict[str, str] = {}
    size = len(header)
    pos = 0
    while pos < size:
        pos_equal = header.find("=", pos)
        if pos_equal < 0:
            break
        name = header[pos:pos_equal].strip()
        pos = pos_equal + 1
        while pos < size and header[pos] == " ":
            pos += 1
        if pos == size:
            break
        pos_semicolon = header.find(";", pos)
        value = header[pos:pos_semicolon if pos_semicolon >= 0 else size].strip()
        if value and value[0] == '"' and value[-1] == '"':
            value = value[1:-1]
        jar.setdefault(name, value)
        if pos_semicolon < 0:
            break
        pos = pos_semicolon + 1
        while pos < size and header[pos] == " ":
            pos += 1
    return jar


class CookieParser:
    """Middleware that fills the cookie jar and emits queued cookies."""

    context = CookieContext

    def before_handle(self, request: Request, response: Response, context: CookieContext) -> None:
        """Read the request's single ``Cookie`` header; several of them give a 400."""
        count = request.headers.count("Cookie")
        if not count:
            return
        if count > 1:
            response.code = 400
            response.end()
            return
        for name, value in parse_cookies(request.headers.get("Cookie")).items():
            context.jar.setdefault(name, value)

    def after_handle(self, request: Request, response: Response, context: CookieContext) -> None:
        """Add a ``Set-Cookie`` header for every queued cookie."""
        for cookie in context.cookies_to_add:
            response.add_header("Set-Cookie", cookie.dump())