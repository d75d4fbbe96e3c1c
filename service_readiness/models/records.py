"""Service record model and shape validation.

A ``ServiceRecord`` is one row of the municipal service-results table.
Field parsing is deliberately lenient: unparseable dates, non-numeric
costs and non-integer wards become ``None`` (treated as absent by every
calculator) instead of raising. Only the *shape* of the input
collection, and the record ``id``, are enforced by ``coerce_records``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ServiceResult(StrEnum):
    """Normalized service outcome; absent or empty results are UNKNOWN."""

    PASS = "PASS"
    FAIL = "FAIL"
    UNKNOWN = "UNKNOWN"


# Raw values accepted as a recognized outcome (after strip + upper).
RECOGNIZED_RESULTS: frozenset[str] = frozenset({"PASS", "FAIL", "UNKNOWN"})


def _parse_date(value: object) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def _parse_ward(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                as_float = float(text)
            except ValueError:
                return None
            return _parse_ward(as_float)
    return None


def _parse_cost(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "").lstrip("$")
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _parse_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


class ServiceRecord(BaseModel):
    """Immutable service record.

    Accepts the source table column names (``service_division_owner``,
    ``estimated_cost``, ``service_result``) as well as the camelCase API
    names and the Python field names.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    id: int
    start_date: date | None = Field(
        default=None,
        validation_alias=AliasChoices("start_date", "startDate"),
    )
    end_date: date | None = Field(
        default=None,
        validation_alias=AliasChoices("end_date", "endDate"),
    )
    division_owner: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "division_owner", "divisionOwner", "service_division_owner", "division"
        ),
    )
    ward: int | None = None
    estimated_cost: float | None = Field(
        default=None,
        validation_alias=AliasChoices("estimated_cost", "estimatedCost", "cost"),
    )
    raw_result: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "raw_result", "result", "service_result", "serviceResult"
        ),
    )
    notes: str | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _lenient_date(cls, value: object) -> date | None:
        return _parse_date(value)

    @field_validator("ward", mode="before")
    @classmethod
    def _lenient_ward(cls, value: object) -> int | None:
        return _parse_ward(value)

    @field_validator("estimated_cost", mode="before")
    @classmethod
    def _lenient_cost(cls, value: object) -> float | None:
        return _parse_cost(value)

    @field_validator("division_owner", "raw_result", mode="before")
    @classmethod
    def _lenient_text(cls, value: object) -> str | None:
        if value is not None and not isinstance(value, str):
            value = str(value)
        return _parse_text(value)

    @field_validator("notes", mode="before")
    @classmethod
    def _lenient_notes(cls, value: object) -> str | None:
        return value if isinstance(value, str) else None

    # ------------------------------------------------------------------
    # Derived accessors
    # ------------------------------------------------------------------

    @property
    def result(self) -> ServiceResult:
        """Normalized outcome; unrecognized values also read as UNKNOWN."""
        if self.raw_result is None:
            return ServiceResult.UNKNOWN
        normalized = self.raw_result.upper()
        if normalized == "PASS":
            return ServiceResult.PASS
        if normalized == "FAIL":
            return ServiceResult.FAIL
        return ServiceResult.UNKNOWN

    @property
    def result_recognized(self) -> bool:
        """False only when a non-empty result is outside the enumeration."""
        return self.raw_result is None or self.raw_result.upper() in RECOGNIZED_RESULTS

    @property
    def cost(self) -> float:
        """Estimated cost with absent values read as zero."""
        return self.estimated_cost or 0.0

    def ward_in_domain(self, ward_max: int) -> bool:
        return self.ward is not None and 1 <= self.ward <= ward_max

    def ward_out_of_domain(self, ward_max: int) -> bool:
        return self.ward is not None and not 1 <= self.ward <= ward_max


def coerce_records(records: object) -> list[ServiceRecord]:
    """Validate the input collection and return it as ``ServiceRecord`` list.

    Raises:
        TypeError: If ``records`` is not a collection of record-like values.
        ValueError: If a record lacks an integer ``id``.
    """
    if isinstance(records, (str, bytes, bytearray, Mapping)) or not isinstance(
        records, Iterable
    ):
        msg = (
            "records must be a sequence of record mappings, "
            f"got {type(records).__name__}."
        )
        raise TypeError(msg)

    coerced: list[ServiceRecord] = []
    for position, item in enumerate(records):
        if isinstance(item, ServiceRecord):
            coerced.append(item)
        elif isinstance(item, Mapping):
            if item.get("id") is None:
                msg = f"record at position {position} has no id."
                raise ValueError(msg)
            coerced.append(ServiceRecord.model_validate(dict(item)))
        else:
            msg = (
                f"record at position {position} must be a mapping or "
                f"ServiceRecord, got {type(item).__name__}."
            )
            raise TypeError(msg)

    return coerced
