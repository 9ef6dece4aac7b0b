"""Two-variant outcome delivered to `perform` handlers."""

import dataclasses as dc
from typing import Any, TypeGuard


@dc.dataclass(frozen=True, slots=True)
class Ok[S]:
    """A value that settled on the success channel."""

    value: S

    def is_ok(self) -> bool:
        return True

    def is_error(self) -> bool:
        return False


@dc.dataclass(frozen=True, slots=True)
class Error[E]:
    """A value that settled on the early-return channel."""

    value: E

    def is_ok(self) -> bool:
        return False

    def is_error(self) -> bool:
        return True


type Result[S, E] = Ok[S] | Error[E]


def is_result(value: Any) -> TypeGuard[Ok[Any] | Error[Any]]:
    return isinstance(value, (Ok, Error))
