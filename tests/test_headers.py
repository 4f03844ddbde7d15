from rookery.headers import HeaderMap, get_header_value


def test_lookup_is_case_insensitive():
    headers = HeaderMap()
    headers.add("Content-Type", "text/plain")
    assert headers.get("content-type") == "text/plain"
    assert headers.get("CONTENT-TYPE") == "text/plain"
    assert "content-TYPE" in headers


def test_missing_key_returns_default():
    headers = HeaderMap()
    assert headers.get("Host") == ""
    assert headers.get("Host", "fallback") == "fallback"
    assert "Host" not in headers
    assert 5 not in headers


def test_multiple_values_kept_in_order():
    headers = HeaderMap()
    headers.add("Set-Cookie", "a=1")
    headers.add("set-cookie", "b=2")
    headers.add("Other", "x")
    assert headers.get_all("SET-COOKIE") == ["a=1", "b=2"]
    assert headers.get("Set-Cookie") == "a=1"
    assert headers.count("set-cookie") == 2
    assert headers.count("Missing") == 0
    assert len(headers) == 3


def test_iteration_preserves_key_spelling():
    headers = HeaderMap([("X-One", "1"), ("x-two", "2")])
    assert list(headers) == [("X-One", "1"), ("x-two", "2")]


def test_construct_from_mapping():
    headers = HeaderMap({"Accept": "*/*", "Host": "example.com"})
    assert headers.get("accept") == "*/*"
    assert len(headers) == 2


def test_equality_ignores_key_case():
    assert HeaderMap([("A", "1")]) == HeaderMap([("a", "1")])
    assert not (HeaderMap([("A", "1")]) == HeaderMap([("A", "2")]))


def test_get_header_value_on_header_map():
    headers = HeaderMap([("Upgrade", "websocket")])
    assert get_header_value(headers, "upgrade") == "websocket"
    assert get_header_value(headers, "connection") == ""


def test_get_header_value_on_plain_dict():
    headers = {"Content-Disposition": "form-data"}
    assert get_header_value(headers, "content-disposition") == "form-data"
    assert get_header_value(headers, "Content-Type") == ""