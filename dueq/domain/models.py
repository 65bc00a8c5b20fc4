"""
Domain models for dueq.

DueJob and TypeStats are frozen Pydantic v2 models returned by the index.
Outcome is the explicit completion result of a job handler: an optional error
and an optional reschedule offset, mirroring a two-argument "done" signal.

Timestamps are integer milliseconds since the Unix epoch; durations are
datetime.timedelta everywhere.
"""

from __future__ import annotations

import dataclasses
from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DueJob(BaseModel):
    """
    A single index entry read back from the store.

    type     — job type (the index the entry lives in)
    id       — caller-chosen opaque identifier, unique within the type (may be empty)
    ready_at — earliest claim time in epoch milliseconds
    """

    model_config = ConfigDict(frozen=True)

    type: str
    id: str
    ready_at: int

    @field_validator("ready_at", mode="before")
    @classmethod
    def _coerce_score(cls, v: object) -> int:
        """Sorted-set scores come back as floats (or strings); store them as ms."""
        match v:
            case bool():
                raise ValueError("ready_at must be numeric")
            case int():
                return v
            case float():
                return int(v)
            case str() | bytes():
                return int(float(v))
            case _:
                raise ValueError(f"ready_at must be numeric, got {type(v).__name__}")


class TypeStats(BaseModel):
    """Number of jobs currently indexed for one job type."""

    model_config = ConfigDict(frozen=True)

    type: str
    count: int = Field(default=0, ge=0)


@dataclasses.dataclass(frozen=True)
class Outcome:
    """
    Result of one handler invocation.

    error  — None on success; otherwise the failure the handler reports
    offset — delay until the job is due again; None means the queue's default_wait
    """

    error: BaseException | None = None
    offset: timedelta | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, offset: timedelta | None = None) -> Outcome:
        return cls(offset=offset)

    @classmethod
    def failure(cls, error: BaseException, offset: timedelta | None = None) -> Outcome:
        return cls(error=error, offset=offset)
