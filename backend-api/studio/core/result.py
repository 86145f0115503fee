"""
Tagged results returned across external boundaries.

Store calls answer with ``StoreResult`` (``data``/``error``) instead of raising;
services that the HTTP layer has to branch on return ``Ok`` or ``Err``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Literal, Optional, TypeVar, Union

T = TypeVar("T")

ErrorKind = Literal["network", "authorization", "not_found", "validation", "backend", "in_flight"]


@dataclass(frozen=True)
class StoreError:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class StoreResult:
    data: Any = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: bool = True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    ok: bool = False

    @classmethod
    def from_store(cls, error: StoreError) -> "Err":
        return cls(kind=error.kind, message=error.message)


Outcome = Union[Ok[T], Err]
