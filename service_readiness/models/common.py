"""Shared types and base model used across service-readiness models."""

from datetime import date, datetime, timezone

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def today() -> date:
    """Return the current UTC calendar date."""
    return utc_now().date()


def safe_pct(part: float, whole: float) -> float:
    """Return ``part / whole * 100``, or 0.0 when ``whole`` is zero."""
    if whole <= 0:
        return 0.0
    return part / whole * 100.0


# --- Base model ---


class ReadinessBase(BaseModel):
    """Base model for every output object.

    Fields are declared in snake_case and serialized in camelCase
    (``model_dump(by_alias=True)``), matching the JSON contract consumed
    by the dashboard front end.
    """

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
        "protected_namespaces": (),
    }
