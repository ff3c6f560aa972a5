"""
Result monad — two-track values for code that must not raise.

A step returns Success(value) or Failure(FailureDescription). Steps are
joined with flat_map; once a step fails, later steps are skipped and the
failure arrives unchanged at the end of the chain.

    split ──ok──▶ decode ──ok──▶ reconcile ──▶ Success(report)
      │             │               │
      └─────────────┴───────────────┴────────▶ Failure(first error)

Both tracks are frozen dataclasses and take part in match/case:

    match load_cert_storage(store):
        case Success(storage): ...
        case Failure(err): ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Generic,
    Iterable,
    List,
    Optional,
    Tuple,
    TypeVar,
)

from railway.failure import ErrorCode, FailureDescription

T = TypeVar("T")
U = TypeVar("U")
A = TypeVar("A")
B = TypeVar("B")
C = TypeVar("C")
R = TypeVar("R")


class Result(Generic[T]):
    """
    Base of Success and Failure.

        >>> Result.success(b"\\x30\\x00").map(len)
        Success(2)
        >>> Result.failure(ErrorCode.VALIDATION_ERROR, "bad DER").map(len)
        Failure(VALIDATION_ERROR: 'bad DER')
    """

    # ── inspection ──

    def is_success(self) -> bool:
        return isinstance(self, Success)

    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    def __bool__(self) -> bool:
        return self.is_success()

    def value(self) -> T:
        """The success value; ValueError on a Failure."""
        match self:
            case Success(v):
                return v
            case Failure(err):
                raise ValueError(f"Cannot get value from a Failure: {err.message}")
        raise TypeError("unreachable")  # pragma: no cover

    def error(self) -> FailureDescription:
        """The failure description; ValueError on a Success."""
        match self:
            case Failure(err):
                return err
            case Success(v):
                raise ValueError(f"Cannot get error from a Success: {v}")
        raise TypeError("unreachable")  # pragma: no cover

    # ── chaining ──

    def flat_map(self, mapper: Callable[[T], Result[U]]) -> Result[U]:
        """
        Feed the value to the next step, which returns its own Result.

            store.read_entries().flat_map(_collect_strict)
        """
        match self:
            case Success(v):
                return mapper(v)
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def map(self, mapper: Callable[[T], U]) -> Result[U]:
        """Transform the value with a plain function. Failures pass through."""
        return self.flat_map(lambda v: Success(mapper(v)))

    def map_failure(self, mapper: Callable[[FailureDescription], FailureDescription]) -> Result[T]:
        """
        Rewrite the error. Successes pass through.

            decoded.map_failure(lambda err: err.prefixed("entry 4"))
        """
        match self:
            case Failure(err):
                return Failure(mapper(err))
        return self

    def either(
        self,
        on_success: Callable[[T], R],
        on_failure: Callable[[FailureDescription], R],
    ) -> R:
        """Leave the railway: whichever handler matches the track produces the answer."""
        match self:
            case Success(v):
                return on_success(v)
            case Failure(err):
                return on_failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    # ── side effects ──

    def peek(self, action: Callable[[T], Any]) -> Result[T]:
        """Run `action` on the value (logging, counting) and return self."""
        match self:
            case Success(v):
                action(v)
        return self

    def peek_failure(self, action: Callable[[FailureDescription], Any]) -> Result[T]:
        """Run `action` on the error and return self."""
        match self:
            case Failure(err):
                action(err)
        return self

    # ── construction ──

    @staticmethod
    def success(value: T) -> Result[T]:
        return Success(value)

    @staticmethod
    def failure(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> Result[T]:
        """
        Failure built from its parts.

            Result.failure(ErrorCode.DATABASE_ERROR, "store unreadable", ex)
        """
        return Failure(FailureDescription(code=code, message=message, exception=exception))

    @staticmethod
    def from_computation(
        computation: Callable[[], T],
        error_code: ErrorCode,
        error_message: str,
    ) -> Result[T]:
        """
        Run code that may raise; an exception becomes a Failure carrying it.

        This is where library calls (lmdb, httpx, asn1crypto) join the railway.
        """
        try:
            return Success(computation())
        except Exception as e:
            return Result.failure(error_code, error_message, e)

    # ── several results ──

    @staticmethod
    def combine(
        ra: Result[A],
        rb: Result[B],
        combiner: Callable[[A, B], R],
    ) -> Result[R]:
        """`combiner(a, b)` if both succeed, else the first failure."""
        return ra.flat_map(lambda a: rb.map(lambda b: combiner(a, b)))

    @staticmethod
    def combine3(
        ra: Result[A],
        rb: Result[B],
        rc: Result[C],
        combiner: Callable[[A, B, C], R],
    ) -> Result[R]:
        """Three-way `combine`."""
        return ra.flat_map(lambda a: Result.combine(rb, rc, lambda b, c: combiner(a, b, c)))

    @staticmethod
    def all_of(results: Iterable[Result[T]]) -> Result[List[T]]:
        """
        All values in order, or the first failure.

        Iteration stops at that failure, so the rest of a generator is
        never evaluated:

            Result.all_of(parse_issuer(name, i) for i, name in enumerate(names))
        """
        values: list[T] = []
        for r in results:
            if isinstance(r, Failure):
                return r
            values.append(r.value())
        return Success(values)

    @staticmethod
    def partition(
        results: Iterable[Result[T]],
    ) -> Tuple[List[T], List[Tuple[int, FailureDescription]]]:
        """
        Every value, plus each failure paired with its position.

        Nothing short-circuits; all of `results` is consumed.
        """
        values: list[T] = []
        failures: list[tuple[int, FailureDescription]] = []
        for index, r in enumerate(results):
            match r:
                case Success(v):
                    values.append(v)
                case Failure(err):
                    failures.append((index, err))
        return values, failures


@dataclass(frozen=True, slots=True)
class Success(Result[T]):
    """A computed value."""

    _value: T

    def __init__(self, value: T) -> None:
        if value is None:
            raise TypeError("Success value must not be None")
        object.__setattr__(self, "_value", value)

    def __repr__(self) -> str:
        return f"Success({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Success):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash((Success, self._value))


@dataclass(frozen=True, slots=True)
class Failure(Result[T]):
    """A FailureDescription in place of a value. Equality ignores cause and timestamp."""

    _error: FailureDescription

    def __init__(self, error: FailureDescription) -> None:
        if error is None:
            raise TypeError("Failure error must not be None")
        object.__setattr__(self, "_error", error)

    def __repr__(self) -> str:
        return f"Failure({self._error.code.value}: {self._error.message!r})"

    def _key(self) -> tuple[ErrorCode, str]:
        return self._error.code, self._error.message

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Failure):
            return self._key() == other._key()
        return NotImplemented

    def __hash__(self) -> int:
        return hash((Failure, *self._key()))
