# -*- coding: utf-8 -*-
"""Typed results for expected domain failures.

Core services never raise for a rule violation (quota exceeded, bad
transition, missing permission). They return an ``Outcome`` holding either the
value or a ``Failure``; route handlers turn the failure into a JSON body.
Database errors and other surprises still propagate as exceptions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    INVALID_RANGE = "invalid_range"
    WEEKEND_NOT_ALLOWED = "weekend_not_allowed"
    HOLIDAY_NOT_ALLOWED = "holiday_not_allowed"
    OUTSIDE_WORK_HOURS = "outside_work_hours"
    MISSING_CUSTOM_CONTENT = "missing_custom_content"
    INVALID_CONTENT = "invalid_content"
    DAILY_QUOTA_EXCEEDED = "daily_quota_exceeded"
    INVALID_TRANSITION = "invalid_transition"
    MISSING_REASON = "missing_reason"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"


_HTTP_STATUS = {
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_TRANSITION: 409,
}


@dataclass
class Failure:
    kind: ErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS.get(self.kind, 400)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"ok": False, "error": self.kind.value, "message": self.message}
        payload.update(self.details)
        return payload


@dataclass
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, **details: Any) -> "Outcome[T]":
        return cls(error=Failure(kind, message, details))

    @classmethod
    def of(cls, failure: Failure) -> "Outcome[T]":
        return cls(error=failure)
