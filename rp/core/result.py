"""Ok / Err carriers for steps that can fail.

Every pipeline step that can fail returns a ``Result`` instead of raising:
the caller decides whether a failure aborts the run, and the type checker
makes sure it decides. Callers narrow with ``isinstance`` or ``match``:

    match find_binary(target / "rmenu-ng"):
        case Ok(path):
            console.success(str(path))
        case Err(error):
            console.error(f"output not found: {error.path}")

Exceptions stay reserved for programming errors (bad arguments, illegal
state transitions).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar, Union

__all__ = ["Ok", "Err", "Result"]

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Union[Ok[T], Err[E]]
