"""asyncio bindings for `unbox`.

The core only knows the shape of a ``subscribe(box, callback)`` function. This module
supplies one for `asyncio.Future` (and therefore `asyncio.Task`).
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Never

from .effects import Action, ContractViolationError, Effect, _execute, perform, unbox_result
from .result import Error, Ok, Result

logger = logging.getLogger(__name__)


def subscribe_future[T](
    future: "asyncio.Future[T]", callback: Callable[[Result[T, BaseException]], None]
) -> None:
    """Call `callback` with the outcome of `future` once it is done.

    A future that raised delivers ``Error(exception)``. A cancelled future delivers
    ``Error(asyncio.CancelledError())``.

    The event loop runs `callback` as a plain callback and only logs what it raises.
    A `ContractViolationError` raised from `callback` (a `pure` effect returning early)
    is therefore reported to the loop's exception handler and the loop is stopped.
    Use `pure_future` to have the violation raised in the awaiting task instead.
    """

    def on_done(done: "asyncio.Future[T]") -> None:
        outcome: Result[T, BaseException]
        if done.cancelled():
            outcome = Error(asyncio.CancelledError())
        elif (exception := done.exception()) is not None:
            outcome = Error(exception)
        else:
            outcome = Ok(done.result())
        try:
            callback(outcome)
        except ContractViolationError as exc:
            loop = done.get_loop()
            loop.call_exception_handler(
                {
                    "message": "Contract violation in effect callback",
                    "exception": exc,
                    "future": done,
                }
            )
            loop.stop()

    future.add_done_callback(on_done)


def unbox_future[T](future: "asyncio.Future[T]") -> Effect[T, BaseException]:
    """Absorb an asyncio future; its exception becomes the early-return value."""
    return unbox_result(future, subscribe_future)


def perform_future[S, E](
    effect: Effect[S, E], *, loop: asyncio.AbstractEventLoop | None = None
) -> "asyncio.Future[Result[S, E]]":
    """Perform `effect` and return a future resolving to its first outcome.

    Args:
        effect: The effect to perform.
        loop: Loop owning the returned future. Defaults to the running loop.

    Returns:
        A future holding the first `Ok` or `Error` delivered. Outcomes delivered
        after the first one (from a batch or a source that calls back twice) are
        dropped.
    """
    if loop is None:
        loop = asyncio.get_running_loop()
    future: asyncio.Future[Result[S, E]] = loop.create_future()

    def settle(outcome: Result[S, E]) -> None:
        if future.done():
            logger.debug("Dropping outcome %r, future already settled", outcome)
            return
        future.set_result(outcome)

    perform(effect, settle)
    return future


def pure_future[S](
    effect: Effect[S, Never], *, loop: asyncio.AbstractEventLoop | None = None
) -> "asyncio.Future[S]":
    """Run an effect that cannot return early and return a future of its success value.

    An early return sets `ContractViolationError` on the returned future, so it is
    raised in whichever task awaits it.

    Args:
        effect: The effect to run.
        loop: Loop owning the returned future. Defaults to the running loop.
    """
    if loop is None:
        loop = asyncio.get_running_loop()
    future: asyncio.Future[S] = loop.create_future()

    def settle(value: S) -> None:
        if not future.done():
            future.set_result(value)

    def violation(value: Any) -> None:
        logger.critical("Effect typed as never returning early returned %r", value)
        if not future.done():
            future.set_exception(ContractViolationError(value))

    _execute(effect, Action(settle, violation))
    return future
