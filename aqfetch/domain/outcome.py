"""
aqfetch/domain/outcome.py

Per-source result of one fetch cycle.
"""

from __future__ import annotations

from dataclasses import dataclass


class OutcomeStatus:
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class TaskOutcome:
    """
    Uniform success/failure value for one source's participation in a cycle.

    Success outcomes carry `message` and `inserted_count`; failure outcomes
    carry `error_message`.
    """

    source: str
    status: str
    message: str | None = None
    inserted_count: int = 0
    error_message: str | None = None

    @classmethod
    def success(cls, *, source: str, message: str, inserted_count: int = 0) -> TaskOutcome:
        return cls(
            source=source,
            status=OutcomeStatus.SUCCESS,
            message=message,
            inserted_count=inserted_count,
        )

    @classmethod
    def failure(cls, *, source: str, error_message: str) -> TaskOutcome:
        return cls(source=source, status=OutcomeStatus.FAILURE, error_message=error_message)

    @property
    def is_success(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    def as_log_fields(self) -> dict[str, object]:
        if self.is_success:
            return {
                "source": self.source,
                "status": self.status,
                "message": self.message,
                "inserted_count": self.inserted_count,
            }
        return {"source": self.source, "status": self.status, "error": self.error_message}
