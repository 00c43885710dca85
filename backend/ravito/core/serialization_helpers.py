"""
Formatting helpers shared by routes and exports.
No business rules here.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union


def as_float(value: Optional[Union[Decimal, float, int]]) -> float:
    """Numeric column -> float, 0 when NULL."""
    return float(value) if value is not None else 0.0


def as_int(value: Optional[Union[Decimal, float, int]]) -> int:
    return int(value) if value is not None else 0


def iso_or_none(value: Optional[Union[date, datetime]]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def format_date_fr(value: Optional[Union[date, datetime]]) -> str:
    """dd/mm/YYYY, empty string when missing"""
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")


def format_datetime_fr(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y %H:%M")
