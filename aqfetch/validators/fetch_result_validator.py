"""
aqfetch/validators/fetch_result_validator.py

Structural check of adapter output before normalization.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from aqfetch.errors import InvalidFetchResultError


class RawFetchResult(BaseModel):
    """
    Adapter output. Only `name` and `measurements` are read; other keys are kept
    but ignored.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    name: str | None = None
    measurements: list[Any]

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str | None:
        # The name is only a fallback location label; never reject a result over it.
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None


def validate_fetch_result(data: object) -> RawFetchResult:
    """
    Validate adapter output, raising `InvalidFetchResultError` when the
    `measurements` list is missing or malformed.
    """

    if isinstance(data, RawFetchResult):
        return data
    try:
        return RawFetchResult.model_validate(data)
    except ValidationError as exc:
        raise InvalidFetchResultError(
            f"Adapter returned invalid results: {exc.error_count()} validation error(s)."
        ) from exc
