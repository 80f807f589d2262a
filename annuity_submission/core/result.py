"""Result[T, E] — explicit success/failure values for the submission core.

Validators, the state machine and the gateway adapters return Ok[T] or
Err[E] instead of raising, so that orchestration code (and the UI layer
above it) decides what a failure means: show a retry affordance, queue a
manual reconciliation, or display blocking validation errors.

Methods: .map, .bind, .unwrap, .unwrap_or, .map_err, .is_ok.
Free functions: unwrap, partition.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, NoReturn, final


@final
@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Success variant."""

    value: T

    def is_ok(self) -> bool:
        return True

    def map[U](self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))

    def bind[U, E](self, f: Callable[[T], Ok[U] | Err[E]]) -> Ok[U] | Err[E]:
        """Chain a second fallible step onto this value."""
        return f(self.value)

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:  # noqa: ARG002
        return self.value

    def map_err(self, f: Callable[[Any], Any]) -> Ok[T]:  # noqa: ARG002
        return self


@final
@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failure variant."""

    error: E

    def is_ok(self) -> bool:
        return False

    def map(self, f: Callable[[Any], Any]) -> Err[E]:  # noqa: ARG002
        return self

    def bind(self, f: Callable[[Any], Any]) -> Err[E]:  # noqa: ARG002
        """Short-circuit: the next step never runs."""
        return self

    def unwrap(self) -> NoReturn:
        raise RuntimeError(f"Called unwrap on Err: {self.error}")

    def unwrap_or[T](self, default: T) -> T:
        return default

    def map_err[F](self, f: Callable[[E], F]) -> Err[F]:
        return Err(f(self.error))


type Result[T, E] = Ok[T] | Err[E]


def unwrap[T](result: Ok[T] | Err[Any]) -> T:
    """Extract the Ok value or raise RuntimeError. Tests and boundaries only."""
    if isinstance(result, Ok):
        return result.value
    if isinstance(result, Err):
        raise RuntimeError(f"unwrap on Err: {result.error}")
    raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")


def partition[T, E](results: Iterable[Ok[T] | Err[E]]) -> tuple[list[T], list[E]]:
    """Split results into (values, errors), keeping every error.

    Unlike a short-circuiting sequence this never drops a failure, which is
    what validation needs: the agent must see all problems at once.
    """
    values: list[T] = []
    errors: list[E] = []
    for r in results:
        match r:
            case Ok(v):
                values.append(v)
            case Err(e):
                errors.append(e)
    return values, errors
