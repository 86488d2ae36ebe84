"""Explicit success/failure values returned across service boundaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .errors import DomainError, ErrorLevel

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Err:
    error: DomainError

    @property
    def kind(self) -> str:
        return self.error.kind

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def level(self) -> ErrorLevel:
        return self.error.level


Result = Union[Ok[T], Err]


__all__ = ["Err", "Ok", "Result"]
