from typing import Annotated, Optional
from pydantic import AfterValidator, BaseModel
from zync.utils.dates import parse_date, parse_time

def _check_date(value: str) -> str:
    try:
        parse_date(value)
    except ValueError:
        raise ValueError("Date must use the YYYY-MM-DD format")
    # strptime also accepts unpadded fields
    if len(value) != 10:
        raise ValueError("Date must use the YYYY-MM-DD format")
    return value

def _check_time(value: str) -> str:
    try:
        parse_time(value)
    except ValueError:
        raise ValueError("Time must use the 24-hour HH:MM format")
    if len(value) != 5:
        raise ValueError("Time must use the 24-hour HH:MM format")
    return value

DateStr = Annotated[str, AfterValidator(_check_date)]
TimeStr = Annotated[str, AfterValidator(_check_time)]

def check_time_range(start: Optional[str], end: Optional[str]) -> None:
    if start is not None and end is not None and start >= end:
        raise ValueError("start_time must be before end_time")

class Message(BaseModel):
    message: str

def reject_nulls(data, nullable=()):
    """
    Partial updates treat an omitted field as "keep". An explicit null is
    only accepted for the fields listed in `nullable`.
    """
    if isinstance(data, dict):
        for field, value in data.items():
            if value is None and field not in nullable:
                raise ValueError(f"{field} cannot be null")
    return data
