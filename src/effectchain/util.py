from collections.abc import Iterable
from typing import Any

from .effects import Effect, _make
from .result import Error, Ok, Result


def batch(*effects: Effect[Any, Any]) -> Effect[Any, Any]:
    """Combine multiple effects into a single effect holding all of their runners.

    The runners keep their argument order. Performing the batch delivers one outcome
    per runner to the handler, so a batch of two single-runner effects calls the
    handler twice. ``batch()`` behaves like ``none()``.

    Args:
        *effects: Effects to combine.
    """
    return _make(runner for effect in effects for runner in effect._runners)


def collect[S, E](results: Iterable[Result[S, E]]) -> Result[list[S], E]:
    """Combine results from left to right, stopping at the first `Error`.

    Items after the first `Error` are not inspected, so a lazy iterable can be used
    to skip validations once one has failed.

    Raises:
        TypeError: If an item is neither `Ok` nor `Error`.
    """
    values: list[S] = []
    for result in results:
        match result:
            case Ok(value):
                values.append(value)
            case Error():
                return result
            case _:
                raise TypeError(f"Expected Ok or Error, got {result!r}.")
    return Ok(values)
