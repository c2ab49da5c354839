"""
Tagged success/failure results for sub-lookups.

Every network lookup returns exactly one of ``Success`` or ``Failure`` and
never raises past its own boundary. ``guarded`` is that boundary.
"""
from __future__ import annotations

import functools
import socket
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

import httpx

from .log import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: str

    @property
    def ok(self) -> bool:
        return False


LookupOutcome = Union[Success[T], Failure]


def failure_reason(exc: BaseException) -> str:
    if isinstance(exc, (httpx.TimeoutException, socket.timeout, TimeoutError)):
        return "timeout"
    text = str(exc).strip()
    return text or type(exc).__name__


def guarded(source: str) -> Callable[[Callable[..., LookupOutcome]], Callable[..., LookupOutcome]]:
    """Convert any exception escaping ``fn`` into a ``Failure``."""

    def decorator(fn: Callable[..., LookupOutcome]) -> Callable[..., LookupOutcome]:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> LookupOutcome:
            try:
                outcome = fn(*args, **kwargs)
            except Exception as e:
                outcome = Failure(failure_reason(e))
            if isinstance(outcome, Failure):
                logger.info("lookup_failed", source=source, reason=outcome.reason)
            return outcome

        return wrapper

    return decorator
