# rookery

Building blocks for small HTTP servers. The package uses only the
standard library.

## Modules

- `rookery.query_string`: `QueryString` parses the part of a URL after `?`.
  It reads plain values with `get`, lists (`name[]=a&name[]=b`) with
  `get_list`, and dictionaries (`name[key]=value`) with `get_dict`. The
  `pop`, `pop_list` and `pop_dict` methods also remove what they return.
  `keys` lists the raw keys. At most 256 pairs are kept. `decode` undoes
  URL encoding: `+` becomes a space and `%XX` becomes a byte. Decoding stops
  at `=`, `#`, `&` or a malformed escape.
- `rookery.headers`: `HeaderMap` is a header multimap whose keys ignore
  case. It keeps insertion order and has `add`, `get`, `get_all` and
  `count`. `get_header_value` returns the first value for a key, or `""`.
- `rookery.multipart`: `Message.parse(headers, body)` reads a
  `multipart/form-data` body into `Part` objects. Each part holds `Header`
  objects with a value and parameters. `get_part_by_name` finds a part by
  its `Content-Disposition` name and raises `KeyError` if there is none.
  `dump` and `dump_part` write parts back out as text. A part without a
  `name` parameter raises `ValueError`.
- `rookery.middleware`: `Request`, `Response` and `MiddlewareContext`.
  `run_before` calls each middleware's `before_handle` in order and stops
  once the response is ended. `run_after` calls `after_handle` on the
  middlewares that were entered, in reverse order. A middleware's
  `context` class attribute creates its per-request context. A hook that
  takes a fourth argument also receives the whole `MiddlewareContext`.
- `rookery.cookies`: the `CookieParser` middleware reads the request's
  `Cookie` header into `CookieContext.jar`. A request with more than one
  `Cookie` header gets a 400 response. The middleware writes a `Set-Cookie`
  header for every cookie queued with `set_cookie`. `Cookie` supports
  `expires`, `max_age`, `domain`, `path`, `secure`, `httponly` and
  `same_site` (see `SameSitePolicy`). `parse_cookies` parses a header value
  on its own.
- `rookery.cors`: the `CORSHandler` middleware adds
  `Access-Control-Allow-*` headers after the handler runs. It never
  overwrites a header the response already has. `global_rules()` returns
  the default policy, and `prefix(path)` adds a policy for paths that start
  with `path`; the first matching prefix wins. On `CORSRules` you can call
  `origin`, `methods`, `headers`, `max_age`, `allow_credentials` and
  `ignore`.
- `rookery.websocket_frames`: `build_header`, `apply_mask`, `accept_key`,
  `handshake_response` and the `Opcode` enum.
- `rookery.websocket`: `WebSocketConnection` is the server side of a
  WebSocket connection, written as a state machine that does no I/O.
  `start()` checks the upgrade request and queues the handshake. You feed
  it bytes read from the peer with `receive_data`, and collect the bytes
  to write with `data_to_send`. It answers pings with pongs, reassembles
  fragmented messages and handles the closing handshake. A lost transport
  is reported with `connection_lost`.
- `rookery.task_timer`: `TaskTimer.schedule(task, timeout)` registers a
  task and returns an identifier. The timeout defaults to 5 seconds and
  may be at most 255. `tick()` runs the tasks whose deadline has passed
  and returns their identifiers. `cancel` drops a task.
- `rookery.log`: levelled logging. `Logger.set_log_level` sets the
  threshold, which starts at `LogLevel.INFO`. `Logger.set_handler`
  installs any `LogHandler`; the default `StderrLogHandler` writes
  `(timestamp) [LEVEL] message` lines. The helpers are `debug`, `info`,
  `warning`, `error` and `critical`.
- `rookery.version`: `VERSION` and `default_server_name()`.

## Examples

```python
from rookery.query_string import QueryString

qs = QueryString("/search?q=hello+world&tag[]=a&tag[]=b&opt[x]=1")
qs.get("q")          # "hello world"
qs.get_list("tag")   # ["a", "b"]
qs.get_dict("opt")   # {"x": "1"}
```

```python
from rookery.cookies import CookieParser
from rookery.headers import HeaderMap
from rookery.middleware import MiddlewareContext, Request, Response, run_after, run_before

chain = [CookieParser()]
request = Request(url="/", headers=HeaderMap({"Cookie": "theme=dark"}))
response = Response()
context = MiddlewareContext(chain)

entered = run_before(chain, request, response, context)
cookies = context.get(CookieParser)
cookies.get_cookie("theme")                      # "dark"
cookies.set_cookie("seen", "yes").path("/").httponly()
run_after(entered, request, response, context)
response.headers.get("Set-Cookie")               # "seen=yes; Path=/; HttpOnly"
```

```python
from rookery.cors import CORSHandler

cors = CORSHandler()
cors.global_rules().origin("https://app.example.com").max_age(600)
cors.prefix("/public").origin("*")
```

```python
from rookery.headers import HeaderMap
from rookery.middleware import Request
from rookery.websocket import WebSocketConnection

request = Request(headers=HeaderMap({
    "Upgrade": "websocket",
    "Sec-WebSocket-Key": "dGhlIHNhbXBsZSBub25jZQ==",
}))
conn = WebSocketConnection(request, on_message=lambda c, msg, binary: c.send_text(msg))
conn.start()
handshake = conn.data_to_send()   # bytes of the 101 Switching Protocols reply
# conn.receive_data(bytes_from_socket); then write conn.data_to_send() back
```

## What it does not do

There is no HTTP server, request parser, router, socket handling, TLS,
compression or static file serving here. An application supplies these
itself. It can then use these pieces to interpret requests, run
middleware and drive WebSocket connections.

## Running the tests

```
pip install -e ".[test]"
pytest
```