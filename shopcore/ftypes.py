# shopcore/ftypes.py
# Maybe and Either for totality: the variant matrix and cart never raise on
# expected outcomes, they return Nothing / Left instead.

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
L = TypeVar("L")
R = TypeVar("R")


# Maybe


@dataclass(frozen=True)
class Maybe(Generic[T]):
    """
    Опциональное значение: Maybe.some(x) или Maybe.nothing().
    Промах при выборе варианта: это Nothing, а не исключение.
    """

    value: Optional[T]

    def __init__(self, value: Optional[T]):
        object.__setattr__(self, "value", value)

    @staticmethod
    def some(value: T) -> "Maybe[T]":
        return Maybe(value)

    @staticmethod
    def nothing() -> "Maybe[None]":
        return Maybe(None)

    @staticmethod
    def from_optional(value: Optional[T]) -> "Maybe[T]":
        """None -> Nothing, всё остальное -> Some"""
        return Maybe(value)

    def is_some(self) -> bool:
        return self.value is not None

    def is_none(self) -> bool:
        return self.value is None

    def map(self, fn: Callable[[T], U]) -> "Maybe[U]":
        return Maybe.from_optional(fn(self.value)) if self.is_some() else Maybe.nothing()

    def bind(self, fn: Callable[[T], "Maybe[U]"]) -> "Maybe[U]":
        return fn(self.value) if self.is_some() else Maybe.nothing()

    def filter(self, predicate: Callable[[T], bool]) -> "Maybe[T]":
        if self.is_some() and predicate(self.value):
            return self
        return Maybe.nothing()

    def get_or_else(self, default: U) -> T | U:
        return self.value if self.is_some() else default

    def to_either(self, left: L) -> "Either[L, T]":
        """Nothing превращается в Left(left)"""
        return Either.right(self.value) if self.is_some() else Either.left(left)

    def __repr__(self) -> str:
        return f"Some({self.value!r})" if self.is_some() else "Nothing"


# Either


@dataclass(frozen=True)
class Either(Generic[L, R]):
    """
    Either<L, R>: Left: причина отказа (is_left=True), Right: результат.

    Используется там, где отказ ожидаем и должен быть типизирован:
    отклонённый промокод, устаревший ответ сервера, неполный выбор.
    """

    is_left: bool
    value: Union[L, R]

    def __init__(self, is_left: bool, value: Union[L, R]):
        object.__setattr__(self, "is_left", is_left)
        object.__setattr__(self, "value", value)

    @staticmethod
    def left(value: L) -> "Either[L, R]":
        return Either(True, value)

    @staticmethod
    def right(value: R) -> "Either[L, R]":
        return Either(False, value)

    @property
    def is_right(self) -> bool:
        return not self.is_left

    def map(self, fn: Callable[[R], U]) -> "Either[L, U]":
        return Either.right(fn(self.value)) if self.is_right else self  # type: ignore[return-value]

    def map_left(self, fn: Callable[[L], U]) -> "Either[U, R]":
        return Either.left(fn(self.value)) if self.is_left else self  # type: ignore[return-value]

    def bind(self, fn: Callable[[R], "Either[L, U]"]) -> "Either[L, U]":
        return fn(self.value) if self.is_right else self  # type: ignore[return-value]

    def fold(self, on_left: Callable[[L], U], on_right: Callable[[R], U]) -> U:
        """Сворачивает обе ветви в одно значение"""
        return on_left(self.value) if self.is_left else on_right(self.value)  # type: ignore[arg-type]

    def get_or_else(self, default: U) -> R | U:
        return self.value if self.is_right else default  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"Left({self.value!r})" if self.is_left else f"Right({self.value!r})"
