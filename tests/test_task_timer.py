import pytest

from rookery.task_timer import TaskTimer


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def test_identifiers_increase(clock):
    timer = TaskTimer(clock=clock)
    first = timer.schedule(lambda: None)
    second = timer.schedule(lambda: None, 2)
    assert second == first + 1
    assert len(timer) == 2


def test_task_runs_only_after_deadline(clock):
    calls = []
    timer = TaskTimer(clock=clock)
    identifier = timer.schedule(lambda: calls.append("ran"), 3)
    clock.now += 3
    assert timer.tick() == []
    assert calls == []
    clock.now += 0.5
    assert timer.tick() == [identifier]
    assert calls == ["ran"]
    assert len(timer) == 0


def test_default_timeout_is_five(clock):
    timer = TaskTimer(clock=clock)
    assert timer.default_timeout == 5
    calls = []
    timer.schedule(lambda: calls.append(1))
    clock.now += 5
    timer.tick()
    assert calls == []
    clock.now += 0.1
    timer.tick()
    assert calls == [1]


def test_custom_default_timeout(clock):
    timer = TaskTimer(default_timeout=1, clock=clock)
    calls = []
    timer.schedule(lambda: calls.append(1))
    clock.now += 1.5
    timer.tick()
    assert calls == [1]


def test_cancel_prevents_run(clock):
    calls = []
    timer = TaskTimer(clock=clock)
    identifier = timer.schedule(lambda: calls.append(1), 1)
    timer.cancel(identifier)
    clock.now += 10
    assert timer.tick() == []
    assert calls == []


def test_cancel_unknown_identifier_is_ignored(clock):
    timer = TaskTimer(clock=clock)
    timer.schedule(lambda: None, 1)
    timer.cancel(999)
    assert len(timer) == 1


def test_identifiers_reset_when_empty(clock):
    timer = TaskTimer(clock=clock)
    first = timer.schedule(lambda: None, 1)
    timer.schedule(lambda: None, 1)
    clock.now += 2
    timer.tick()
    assert timer.schedule(lambda: None, 1) == first


def test_identifiers_not_reset_while_tasks_remain(clock):
    timer = TaskTimer(clock=clock)
    timer.schedule(lambda: None, 1)
    last = timer.schedule(lambda: None, 10)
    clock.now += 2
    timer.tick()
    assert timer.schedule(lambda: None, 1) == last + 1


def test_tasks_run_in_identifier_order(clock):
    order = []
    timer = TaskTimer(clock=clock)
    a = timer.schedule(lambda: order.append("a"), 2)
    b = timer.schedule(lambda: order.append("b"), 1)
    clock.now += 3
    assert timer.tick() == [a, b]
    assert order == ["a", "b"]


def test_timeout_out_of_range(clock):
    timer = TaskTimer(clock=clock)
    with pytest.raises(ValueError):
        timer.schedule(lambda: None, -1)
    with pytest.raises(ValueError):
        timer.schedule(lambda: None, 256)
    with pytest.raises(ValueError):
        timer.default_timeout = 300