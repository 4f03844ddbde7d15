"""Building blocks for small HTTP servers: query strings, multipart bodies, cookies, CORS, middleware, WebSocket framing, task timers and logging."""

__version__ = "0.1.0"