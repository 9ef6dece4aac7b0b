import dataclasses as dc
import logging
import threading
from collections.abc import Callable, Iterable
from functools import partial
from typing import Any, Never, TypeVar

from .result import Error, Ok, Result, is_result

S = TypeVar("S")  # Success value type
E = TypeVar("E")  # Early-return value type
S2 = TypeVar("S2")  # Success value type after a transform
E2 = TypeVar("E2")  # Early-return value type after a transform
B = TypeVar("B")  # External box type
V = TypeVar("V")  # Value delivered by an external source

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class Action[S, E]:
    """Continuation pair handed to a runner.

    A runner must call exactly one of the two slots, exactly once.
    """

    on_continue: Callable[[S], None]
    on_throw: Callable[[E], None]


type Runner[S, E] = Callable[[Action[S, E]], None]


class Effect[S, E]:
    """A deferred computation settling on either the success or the early-return channel.

    Effects are built with the module level constructors and combinators and run
    with `perform` or `pure`. Building an effect never runs anything.
    """

    __slots__ = ("_runners",)

    _runners: tuple[Runner[S, E], ...]

    def __init__(self) -> None:
        raise TypeError(
            "Effect cannot be instantiated directly; use continue_(), throw(), "
            "unbox() or another constructor."
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return f"Effect(runners={len(self._runners)})"


class ContractViolationError(BaseException):
    """Raised when an effect typed as never returning early does so anyway.

    This signals a bug in a combinator or adapter, not a domain failure. It
    derives from BaseException so that ``except Exception`` does not catch it.
    """

    __match_args__ = ("value",)

    def __init__(self, value: Any):
        super().__init__(f"Early return from an effect that cannot return early: {value!r}")
        self.value = value


def _make(runners: Iterable[Runner[Any, Any]]) -> Effect[Any, Any]:
    effect = object.__new__(Effect)
    object.__setattr__(effect, "_runners", tuple(runners))
    return effect


class _Trampoline:
    """Runs scheduled steps one after another instead of nesting them on the call stack.

    Steps scheduled while a step runs are executed before any step that was already
    waiting, in the order they were scheduled, so the execution order is the same as
    calling them directly.
    """

    __slots__ = ("_pending", "_stack")

    def __init__(self) -> None:
        self._pending: list[Callable[[], None]] = []
        self._stack: list[Callable[[], None]] = []

    def push(self, step: Callable[[], None]) -> None:
        self._pending.append(step)

    def drain(self) -> None:
        self._flush()
        while self._stack:
            self._stack.pop()()
            self._flush()

    def _flush(self) -> None:
        self._stack.extend(reversed(self._pending))
        self._pending.clear()


_local = threading.local()


def _drive(step: Callable[[], None]) -> None:
    """Run `step` and everything it schedules on a fresh trampoline."""
    trampoline = _Trampoline()
    trampoline.push(step)
    previous = getattr(_local, "trampoline", None)
    _local.trampoline = trampoline
    try:
        trampoline.drain()
    finally:
        _local.trampoline = previous


def _bounce(step: Callable[[], None]) -> None:
    """Schedule `step` on the trampoline draining in this thread, or drive it directly."""
    trampoline = getattr(_local, "trampoline", None)
    if trampoline is None:
        _drive(step)
    else:
        trampoline.push(step)


def _run(effect: Effect[S, E], action: Action[S, E]) -> None:
    for runner in effect._runners:
        _bounce(partial(runner, action))


def _execute(effect: Effect[S, E], action: Action[S, E]) -> None:
    """Run every runner of `effect` against `action` to completion of its synchronous part."""
    _drive(partial(_run, effect, action))


def _deferred(callback: Callable[[Any], None]) -> Callable[[Any], None]:
    """Wrap a continuation so that calling it schedules it on the trampoline."""

    def deliver(value: Any) -> None:
        _bounce(partial(callback, value))

    return deliver


def continue_(value: S) -> Effect[S, Never]:
    """Create an effect that settles on the success channel with `value`."""

    def run(action: Action[S, Never]) -> None:
        action.on_continue(value)

    return _make((run,))


def throw(value: E) -> Effect[Never, E]:
    """Create an effect that settles on the early-return channel with `value`."""

    def run(action: Action[Never, E]) -> None:
        action.on_throw(value)

    return _make((run,))


def none() -> Effect[Any, Any]:
    """Create an effect with no runners. Performing it calls neither handler."""
    return _make(())


def wrap_result(result: Result[S, E]) -> Effect[S, E]:
    """Lift a `Result` onto the two channels: `Ok` continues, `Error` returns early.

    Raises:
        TypeError: If `result` is neither `Ok` nor `Error`.
    """
    if not is_result(result):
        raise TypeError(f"Expected Ok or Error, got {result!r}.")
    match result:
        case Ok(value):
            return continue_(value)
        case Error(value):
            return throw(value)


def wrap_option(value: S | None, fallback: E) -> Effect[S, E]:
    """Lift an optional value: `None` returns early with `fallback`, anything else continues."""
    if value is None:
        return throw(fallback)
    return continue_(value)


def map(effect: Effect[S, E], f: Callable[[S], S2]) -> Effect[S2, E]:
    """Transform the success value of `effect` with `f`.

    Early returns pass through unchanged.
    """

    def wrap(runner: Runner[S, E]) -> Runner[S2, E]:
        def run(action: Action[S2, E]) -> None:
            inner = Action(_deferred(lambda value: action.on_continue(f(value))), action.on_throw)
            _bounce(partial(runner, inner))

        return run

    return _make(wrap(runner) for runner in effect._runners)


def map_early(effect: Effect[S, E], f: Callable[[E], E2]) -> Effect[S, E2]:
    """Transform the early-return value of `effect` with `f`.

    Success values pass through unchanged.
    """

    def wrap(runner: Runner[S, E]) -> Runner[S, E2]:
        def run(action: Action[S, E2]) -> None:
            inner = Action(action.on_continue, _deferred(lambda value: action.on_throw(f(value))))
            _bounce(partial(runner, inner))

        return run

    return _make(wrap(runner) for runner in effect._runners)


def then(effect: Effect[S, E], f: Callable[[S], Effect[S2, E]]) -> Effect[S2, E]:
    """Sequence `effect` into the effect produced by `f`.

    On success with `v` the effect `f(v)` is run against the same continuation pair.
    On an early return `f` is never called and the value is forwarded as is.

    Args:
        effect: The effect to run first.
        f: Called with the success value; returns the effect to continue with.

    Returns:
        A new effect. Neither `effect` nor the result of `f` is run until performed.
    """

    def wrap(runner: Runner[S, E]) -> Runner[S2, E]:
        def run(action: Action[S2, E]) -> None:
            inner = Action(_deferred(lambda value: _run(f(value), action)), action.on_throw)
            _bounce(partial(runner, inner))

        return run

    return _make(wrap(runner) for runner in effect._runners)


def from_(value: S, f: Callable[[S], Effect[S2, E]]) -> Effect[S2, E]:
    """Start a chain from a plain value. Same as ``then(continue_(value), f)``."""
    return then(continue_(value), f)


def handle(effect: Effect[S, E], f: Callable[[Result[S, E]], Effect[S2, E2]]) -> Effect[S2, E2]:
    """Observe both channels of `effect` and continue with the effect produced by `f`.

    A success `v` calls ``f(Ok(v))`` and an early return `e` calls ``f(Error(e))``.
    This is the only combinator that can turn an early return back into a success,
    or a success into an early return.
    """

    def wrap(runner: Runner[S, E]) -> Runner[S2, E2]:
        def run(action: Action[S2, E2]) -> None:
            inner = Action(
                _deferred(lambda value: _run(f(Ok(value)), action)),
                _deferred(lambda value: _run(f(Error(value)), action)),
            )
            _bounce(partial(runner, inner))

        return run

    return _make(wrap(runner) for runner in effect._runners)


def unbox(box: B, subscribe: Callable[[B, Callable[[V], None]], Any]) -> Effect[V, Never]:
    """Absorb an externally driven value into an effect.

    When performed, the effect calls ``subscribe(box, callback)`` and continues with
    whatever `callback` is invoked with. `subscribe` is expected to invoke `callback`
    exactly once. If it never does, the effect never settles. If it does more than
    once, every downstream continuation runs again for each extra invocation.

    Args:
        box: Opaque handle to a pending external result (a future, a request, ...).
        subscribe: Registers `callback` to receive the resolved value of `box`.

    Returns:
        An effect on the success channel carrying the resolved value.
    """

    def run(action: Action[V, Never]) -> None:
        subscribe(box, action.on_continue)

    return _make((run,))


def unbox_result(
    box: B, subscribe: Callable[[B, Callable[[Result[S, E]], None]], Any]
) -> Effect[S, E]:
    """Like `unbox`, for sources that resolve to a `Result`.

    An `Error` from the source settles the effect on the early-return channel.
    """
    return then(unbox(box, subscribe), wrap_result)


def unbox_option(
    box: B, subscribe: Callable[[B, Callable[[S | None], None]], Any], fallback: E
) -> Effect[S, E]:
    """Like `unbox`, for sources that may resolve to `None`.

    `None` settles the effect on the early-return channel with `fallback`.
    """
    return then(unbox(box, subscribe), lambda value: wrap_option(value, fallback))


def perform(effect: Effect[S, E], handler: Callable[[Result[S, E]], Any]) -> None:
    """Run `effect`, delivering its outcome to `handler` as `Ok` or `Error`.

    Every runner is invoked in order. For effects built from a single runner the
    handler is called exactly once, possibly after this function has returned if
    the effect waits on an external source. Results are not cached: performing the
    same effect again runs every runner again, including re-subscribing to any
    unboxed sources.
    """
    logger.debug("Performing %r", effect)
    _execute(effect, Action(lambda value: handler(Ok(value)), lambda value: handler(Error(value))))


def pure(effect: Effect[S, Never], handler: Callable[[S], Any]) -> None:
    """Run an effect that cannot return early, passing its success value to `handler`.

    Raises:
        ContractViolationError: If the effect returns early despite its type.
    """

    def violation(value: Any) -> None:
        logger.critical("Effect typed as never returning early returned %r", value)
        raise ContractViolationError(value)

    logger.debug("Performing %r as pure", effect)
    _execute(effect, Action(handler, violation))

