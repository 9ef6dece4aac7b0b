"""A two-channel deferred computation type for Python.

An `Effect` either continues with a success value or returns early with an
alternate value. Effects are plain data until performed, and externally driven
values (futures, callbacks, ...) are absorbed with `unbox` without requiring
the surrounding code to be asynchronous.

Example:

>>> import effectchain as ec
>>>
>>> def validate(age: int) -> ec.Effect[int, str]:
...     if age < 0:
...         return ec.throw("negative age")
...     return ec.continue_(age)
>>>
>>> program = ec.map(ec.from_(41, validate), lambda age: age + 1)
>>> ec.perform(program, print)
Ok(value=42)
>>> ec.perform(ec.then(ec.continue_(-1), validate), print)
Error(value='negative age')
"""

from .__version__ import __version__
from .effects import (
    Action,
    ContractViolationError,
    Effect,
    Runner,
    continue_,
    from_,
    handle,
    map,
    map_early,
    none,
    perform,
    pure,
    then,
    throw,
    unbox,
    unbox_option,
    unbox_result,
    wrap_option,
    wrap_result,
)
from .result import Error, Ok, Result, is_result
from .util import batch, collect

__all__ = [
    "Action",
    "ContractViolationError",
    "Effect",
    "Error",
    "Ok",
    "Result",
    "Runner",
    "__version__",
    "batch",
    "collect",
    "continue_",
    "from_",
    "handle",
    "is_result",
    "map",
    "map_early",
    "none",
    "perform",
    "pure",
    "then",
    "throw",
    "unbox",
    "unbox_option",
    "unbox_result",
    "wrap_option",
    "wrap_result",
]
