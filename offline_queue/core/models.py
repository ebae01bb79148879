"""Data models for the offline queue."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from offline_queue.core.utils import parse_iso_utc, to_aware_utc, to_iso_utc, utc_now

DEFAULT_MAX_ATTEMPTS = 3


class QueuedItem(BaseModel):
    """One buffered outbound operation.

    Instances are immutable. Changing an attribute (for example bumping the
    attempt counter) always produces a new record that replaces the old one
    in the queue. ``headers`` is a read-only mapping.

    ``max_attempts`` counts retries after the first attempt, so an item is
    dispatched at most ``max_attempts + 1`` times before it is dropped.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Caller-assigned unique identifier")
    method: str = Field(default="GET", min_length=1, description="Operation verb")
    target: str = Field(..., min_length=1, description="Destination URL or address")
    payload: Any = Field(default=None, description="Opaque JSON-encodable body")
    headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    enqueued_at: datetime = Field(default_factory=utc_now, alias="enqueuedAt")
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=0, alias="maxAttempts")
    attempt_count: int = Field(default=0, ge=0, alias="attemptCount")

    @field_validator("method")
    @classmethod
    def _normalize_method(cls, value: str) -> str:
        return value.upper()

    @field_validator("payload")
    @classmethod
    def _require_json_payload(cls, value: Any) -> Any:
        # The whole queue persists as one JSON document
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"payload must be JSON-encodable: {e}") from e
        return value

    @field_validator("headers")
    @classmethod
    def _freeze_headers(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("headers")
    def _serialize_headers(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)

    @field_validator("enqueued_at", mode="before")
    @classmethod
    def _parse_enqueued_at(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_iso_utc(value)
        if isinstance(value, datetime):
            return to_aware_utc(value)
        return value

    @field_serializer("enqueued_at")
    def _serialize_enqueued_at(self, value: datetime) -> str:
        return to_iso_utc(value)

    @property
    def is_exhausted(self) -> bool:
        """True once the attempt budget is used up."""
        return self.attempt_count > self.max_attempts

    @property
    def remaining_attempts(self) -> int:
        return max(0, self.max_attempts + 1 - self.attempt_count)

    def with_incremented_attempt(self) -> QueuedItem:
        """Return a copy with ``attempt_count`` incremented by one."""
        return self.model_copy(update={"attempt_count": self.attempt_count + 1})

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted record shape (camelCase wire names)."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> QueuedItem:
        """Parse a persisted record.

        Raises:
            pydantic.ValidationError: If the record is invalid.
        """
        return cls.model_validate(record)

    def __str__(self) -> str:
        return (
            f"QueuedItem(id={self.id}, {self.method} {self.target}, "
            f"attempts={self.attempt_count}/{self.max_attempts})"
        )


@dataclass(frozen=True)
class DispatchResult:
    """Outcome a dispatch function may return.

    Returning ``None`` from a dispatch function is treated as success, and
    raising an exception as failure, so returning a ``DispatchResult`` is
    only needed when a failure should be reported without raising.
    """

    succeeded: bool
    error: BaseException | None = None

    @classmethod
    def success(cls) -> DispatchResult:
        return cls(succeeded=True)

    @classmethod
    def failure(cls, error: BaseException) -> DispatchResult:
        return cls(succeeded=False, error=error)


@dataclass
class QueueStats:
    """Snapshot of coordinator counters."""

    pending: int
    initialized: bool
    flushing: bool
    flush_cycles: int = 0
    dispatched: int = 0
    dropped: int = 0
    failed_attempts: int = 0
    persist_failures: int = 0
