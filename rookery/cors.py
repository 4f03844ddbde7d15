"""Middleware that adds CORS headers to responses, with per-prefix rules."""

from __future__ import annotations

from types import SimpleNamespace

from .headers import get_header_value
from .middleware import Request, Response


class CORSRules:
    """A CORS policy; every allow list defaults to ``*``.

    Rules are created by a :class:`CORSHandler` and the setters return the
    rules so calls can be chained.
    """

    def __init__(self, handler: CORSHandler) -> None:
        self._handler = handler
        self._ignore = False
        self._origin = "*"
        self._methods = "*"
        self._headers = "*"
        self._max_age = ""
        self._allow_credentials = False

    @staticmethod
    def _add_list_item(current: str, value: str) -> str:
        if current == "*":
            current = ""
        return f"{current}, {value}" if current else value

    def origin(self, origin: str) -> CORSRules:
        """Set Access-Control-Allow-Origin."""
        self._origin = origin
        return self

    def methods(self, *args: str) -> CORSRules:
        """Add methods to Access-Control-Allow-Methods."""
        if not args:
            raise TypeError("methods() needs at least one HTTP method")
        for method in args:
            self._methods = self._add_list_item(self._methods, str(method).upper())
        return self

    def headers(self, *args: str) -> CORSRules:
        """Add headers to Access-Control-Allow-Headers."""
        if not args:
            raise TypeError("headers() needs at least one header name")
        for header in args:
            self._headers = self._add_list_item(self._headers, header)
        return self

    def max_age(self, max_age: int) -> CORSRules:
        """Set Access-Control-Max-Age in seconds."""
        self._max_age = str(int(max_age))
        return self

    def allow_credentials(self) -> CORSRules:
        """Send Access-Control-Allow-Credentials: true."""
        self._allow_credentials = True
        return self

    def ignore(self) -> None:
        """Send no CORS headers at all under this policy."""
        self._ignore = True

    def prefix(self, prefix: str) -> CORSRules:
        """Create rules for paths starting with ``prefix`` on the owning handler."""
        return self._handler.prefix(prefix)

    def global_rules(self) -> CORSRules:
        """Return the owning handler's default rules."""
        return self._handler.global_rules()

    @staticmethod
    def _set_if_absent(response: Response, key: str, value: str) -> None:
        if not value:
            return
        if get_header_value(response.headers, key):
            return
        response.add_header(key, value)

    def apply(self, response: Response) -> None:
        """Add this policy's headers, leaving ones the response already has."""
        if self._ignore:
            return
        self._set_if_absent(response, "Access-Control-Allow-Origin", self._origin)
        self._set_if_absent(response, "Access-Control-Allow-Methods", self._methods)
        self._set_if_absent(response, "Access-Control-Allow-Headers", self._headers)
        self._set_if_absent(response, "Access-Control-Max-Age", self._max_age)
        if self._allow_credentials:
            self._set_if_absent(response, "Access-Control-Allow-Credentials", "true")


class CORSHandler:
    """Global middleware applying the first matching prefix rule, or the default."""

    context = SimpleNamespace

    def __init__(self) -> None:
        self._rules: list[tuple[str, CORSRules]] = []
        self._default = CORSRules(self)

    def before_handle(self, request: Request, response: Response, context: object) -> None:
        """Nothing happens before the handler runs."""

    def after_handle(self, request: Request, response: Response, context: object) -> None:
        """Apply the rules matching the request path."""
        self.find_rule(request.url).apply(response)

    def prefix(self, prefix: str) -> CORSRules:
        """Create and return rules for paths starting with ``prefix``."""
        rules = CORSRules(self)
        self._rules.append((prefix, rules))
        return rules

    def global_rules(self) -> CORSRules:
        """Return the default rules."""
        return self._default

    def find_rule(self, path: str) -> CORSRules:
        """Return the first rules whose prefix starts ``path``, else the default."""
        for prefix, rules in self._rules:
            if path.startswith(prefix):
                return rules
        return self._default