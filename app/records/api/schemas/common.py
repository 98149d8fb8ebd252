from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for request/response bodies: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageResponse(BaseModel):
    message: str


def to_day(value: Any) -> Any:
    """
    Reduces a timestamp to its calendar day.

    Attendance and event dates are compared at day granularity, so
    '2024-01-01T08:30:00Z' and '2024-01-01' name the same day. Anything that
    is not a timestamp is returned untouched for pydantic to validate.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


def parse_day(value: Any) -> date:
    """Parses a query-string date (ISO date or timestamp) into a ``date``."""
    value = to_day(value)
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)
