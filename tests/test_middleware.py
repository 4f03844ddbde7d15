import pytest

from rookery.headers import HeaderMap
from rookery.middleware import (
    MiddlewareContext,
    Request,
    Response,
    run_after,
    run_before,
)


class _Ctx:
    def __init__(self):
        self.seen = []


def _recorder(label, log, stop=False):
    class Recorder:
        context = _Ctx

        def before_handle(self, request, response, ctx):
            log.append(("before", label))
            ctx.seen.append("before")
            if stop:
                response.code = 403
                response.end()

        def after_handle(self, request, response, ctx):
            log.append(("after", label))
            ctx.seen.append("after")

    Recorder.__name__ = f"Recorder{label}"
    return Recorder()


def test_context_lookup_by_type():
    log = []
    first = _recorder("a", log)
    context = MiddlewareContext([first])
    assert isinstance(context.get(type(first)), _Ctx)
    assert context.get(type(first)) is context.get(type(first))
    with pytest.raises(KeyError):
        context.get(int)


def test_before_in_order_after_in_reverse():
    log = []
    chain = [_recorder("a", log), _recorder("b", log), _recorder("c", log)]
    request, response = Request(), Response()
    context = MiddlewareContext(chain)
    entered = run_before(chain, request, response, context)
    run_after(entered, request, response, context)
    assert log == [
        ("before", "a"), ("before", "b"), ("before", "c"),
        ("after", "c"), ("after", "b"), ("after", "a"),
    ]
    assert context.get(type(chain[1])).seen == ["before", "after"]


def test_ended_response_stops_chain():
    log = []
    chain = [_recorder("a", log), _recorder("b", log, stop=True), _recorder("c", log)]
    request, response = Request(), Response()
    context = MiddlewareContext(chain)
    entered = run_before(chain, request, response, context)
    run_after(entered, request, response, context)
    assert entered == chain[:2]
    assert ("before", "c") not in log
    assert log[-2:] == [("after", "b"), ("after", "a")]
    assert response.completed is True
    assert response.code == 403


def test_four_argument_handlers_receive_all_contexts():
    class Store:
        class context:
            def __init__(self):
                self.value = "stored"

        def before_handle(self, request, response, ctx):
            pass

        def after_handle(self, request, response, ctx):
            pass

    class Reader:
        class context:
            def __init__(self):
                self.copied = None

        def before_handle(self, request, response, ctx, all_ctx):
            ctx.copied = all_ctx.get(Store).value

        def after_handle(self, request, response, ctx, all_ctx):
            response.body = all_ctx.get(Store).value

    chain = [Store(), Reader()]
    request, response = Request(), Response()
    context = MiddlewareContext(chain)
    run_after(run_before(chain, request, response, context), request, response, context)
    assert context.get(Reader).copied == "stored"
    assert response.body == "stored"


def test_contexts_are_fresh_per_request():
    log = []
    middleware = _recorder("a", log)
    one = MiddlewareContext([middleware])
    two = MiddlewareContext([middleware])
    run_before([middleware], Request(), Response(), one)
    assert one.get(type(middleware)).seen == ["before"]
    assert two.get(type(middleware)).seen == []


def test_response_add_header_keeps_all_values():
    response = Response()
    response.add_header("Set-Cookie", "a=1")
    response.add_header("set-cookie", "b=2")
    assert response.headers.get_all("SET-COOKIE") == ["a=1", "b=2"]
    assert response.completed is False
    response.end()
    assert response.completed is True


def test_request_defaults_and_headers():
    request = Request(url="/x", headers=HeaderMap({"Host": "example.com"}))
    assert request.method == "GET"
    assert request.headers.get("host") == "example.com"
    assert request.url == "/x"