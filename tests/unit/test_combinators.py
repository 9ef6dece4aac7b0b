"""Unit tests for map, map_early, then, from_ and handle."""

from typing import Any

import effectchain as ec
from effectchain import Error, Ok


def run(effect: ec.Effect[Any, Any]) -> list[Any]:
    outcomes: list[Any] = []
    ec.perform(effect, outcomes.append)
    return outcomes


def identity(x: Any) -> Any:
    return x


def double(x: int) -> int:
    return x * 2


def increment(x: int) -> int:
    return x + 1


def test_map_transforms_success():
    """Test that map applies the function to a success value."""
    assert run(ec.map(ec.continue_(5), double)) == [Ok(10)]


def test_map_skips_early_return():
    """Test that map leaves early returns untouched and does not call the function."""
    calls: list[Any] = []
    effect = ec.map(ec.throw("e"), lambda v: calls.append(v))
    assert run(effect) == [Error("e")]
    assert calls == []


def test_map_early_transforms_early_return():
    """Test that map_early applies the function to an early-return value."""
    assert run(ec.map_early(ec.throw("e"), str.upper)) == [Error("E")]
    assert run(ec.map_early(ec.continue_(1), str.upper)) == [Ok(1)]


def test_functor_identity():
    """Test that mapping the identity function changes nothing on either channel."""
    for effect in (ec.continue_(3), ec.throw("x")):
        assert run(ec.map(effect, identity)) == run(effect)
        assert run(ec.map_early(effect, identity)) == run(effect)


def test_functor_composition():
    """Test that two maps equal one map of the composed function."""
    effect = ec.continue_(3)
    assert run(ec.map(ec.map(effect, double), increment)) == run(
        ec.map(effect, lambda x: increment(double(x)))
    )
    early = ec.throw(3)
    assert run(ec.map_early(ec.map_early(early, double), increment)) == run(
        ec.map_early(early, lambda x: increment(double(x)))
    )


def test_map_runs_source_once():
    """Test that a mapped effect subscribes to its source only once per perform."""
    subscriptions: list[str] = []

    def subscribe(box: str, callback: Any) -> None:
        subscriptions.append(box)
        callback(1)

    effect = ec.map(ec.map_early(ec.unbox("src", subscribe), str), double)
    assert run(effect) == [Ok(2)]
    assert subscriptions == ["src"]


def test_then_left_identity():
    """Test that then(continue_(v), f) behaves as f(v)."""

    def f(x: int) -> ec.Effect[int, str]:
        return ec.continue_(x + 1) if x > 0 else ec.throw("non-positive")

    for v in (1, -1):
        assert run(ec.then(ec.continue_(v), f)) == run(f(v))


def test_then_right_identity():
    """Test that then(effect, continue_) behaves as effect."""
    for effect in (ec.continue_(3), ec.throw("x")):
        assert run(ec.then(effect, ec.continue_)) == run(effect)


def test_then_associativity():
    """Test that nesting then calls either way gives the same outcome."""

    def f(x: int) -> ec.Effect[int, str]:
        return ec.continue_(x * 3)

    def g(x: int) -> ec.Effect[int, str]:
        return ec.throw("big") if x > 10 else ec.continue_(x + 1)

    for v in (2, 5):
        left = ec.then(ec.then(ec.continue_(v), f), g)
        right = ec.then(ec.continue_(v), lambda x: ec.then(f(x), g))
        assert run(left) == run(right)


def test_then_short_circuits():
    """Test that an early return skips the continuation entirely."""
    calls: list[Any] = []

    def f(x: Any) -> ec.Effect[Any, Any]:
        calls.append(x)
        return ec.continue_(x)

    assert run(ec.then(ec.throw("boom"), f)) == [Error("boom")]
    assert calls == []


def test_then_is_lazy():
    """Test that the continuation is only called once the effect is performed."""
    calls: list[int] = []

    def f(x: int) -> ec.Effect[int, Any]:
        calls.append(x)
        return ec.continue_(x)

    effect = ec.then(ec.continue_(1), f)
    assert calls == []
    run(effect)
    assert calls == [1]


def test_then_into_none():
    """Test that continuing into the empty effect never settles."""
    assert run(ec.then(ec.continue_(1), lambda _: ec.none())) == []


def test_from():
    """Test that from_ starts a chain from a plain value."""
    assert run(ec.from_(4, lambda x: ec.continue_(x * x))) == [Ok(16)]


def test_handle_success():
    """Test that handle(continue_(v), f) behaves as f(Ok(v))."""

    def f(result: ec.Result[int, str]) -> ec.Effect[str, Any]:
        return ec.continue_(f"got {result!r}")

    assert run(ec.handle(ec.continue_(1), f)) == run(f(Ok(1)))


def test_handle_early_return():
    """Test that handle(throw(e), f) behaves as f(Error(e))."""

    def f(result: ec.Result[int, str]) -> ec.Effect[str, Any]:
        return ec.continue_(f"got {result!r}")

    assert run(ec.handle(ec.throw("e"), f)) == run(f(Error("e")))


def test_handle_recovers():
    """Test that handle can turn an early return into a success."""

    def recover(result: ec.Result[int, str]) -> ec.Effect[int, str]:
        match result:
            case Error("missing"):
                return ec.continue_(0)
        return ec.wrap_result(result)

    assert run(ec.handle(ec.throw("missing"), recover)) == [Ok(0)]
    assert run(ec.handle(ec.throw("other"), recover)) == [Error("other")]
    assert run(ec.handle(ec.continue_(5), recover)) == [Ok(5)]


def test_handle_can_fail_a_success():
    """Test that handle can turn a success into an early return."""
    effect = ec.handle(ec.continue_(-1), lambda r: ec.throw("negative"))
    assert run(effect) == [Error("negative")]


def test_stages_run_in_composition_order():
    """Test that chained stages execute strictly in the order they were composed."""
    order: list[str] = []

    def stage(name: str):
        def f(x: Any) -> ec.Effect[Any, Any]:
            order.append(name)
            return ec.continue_(x)

        return f

    effect = ec.then(ec.then(ec.then(ec.continue_(0), stage("a")), stage("b")), stage("c"))
    run(effect)
    assert order == ["a", "b", "c"]
