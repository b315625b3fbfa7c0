"""
Result-тип для публичной границы пайплайна.

Стадии внутри бросают ImageProcessingError, оркестратор ловит первую
ошибку и возвращает Failure. Наружу исключения не выходят.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

from .exceptions import ImageProcessingError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Успешный результат с полезной нагрузкой."""

    value: T

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """Неуспешный результат: первая ошибка и стадия, на которой она случилась."""

    error: ImageProcessingError
    stage: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    def unwrap(self):
        raise self.error


Result = Union[Success[T], Failure]
