"""
Helpers de formatage et de calendrier pour le module Activité.
Pas de logique métier ici: uniquement montants, noms de mois et bornes de dates.
"""
import calendar
from datetime import date
from typing import Optional, Tuple

from pydantic import BaseModel


MONTH_NAMES_FR = [
    "janvier",
    "février",
    "mars",
    "avril",
    "mai",
    "juin",
    "juillet",
    "août",
    "septembre",
    "octobre",
    "novembre",
    "décembre",
]


class Evolution(BaseModel):
    value: float
    is_positive: bool


def format_currency(amount, with_symbol: bool = True) -> str:
    """Montant FCFA sans décimales, milliers séparés par une espace: 1 250 000 FCFA"""
    rounded = int(round(float(amount or 0)))
    grouped = f"{abs(rounded):,}".replace(",", " ")
    text = f"-{grouped}" if rounded < 0 else grouped
    return f"{text} FCFA" if with_symbol else text


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def get_month_name(month: int) -> str:
    if not 1 <= month <= 12:
        raise ValueError(f"Mois invalide: {month}")
    return MONTH_NAMES_FR[month - 1]


def year_bounds(year: int) -> Tuple[date, date]:
    """[1er janvier, 1er janvier suivant)"""
    return date(year, 1, 1), date(year + 1, 1, 1)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """[1er du mois, 1er du mois suivant)"""
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def previous_month(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def calculate_evolution(current: float, previous: Optional[float]) -> Optional[Evolution]:
    """Variation en % entre deux périodes; None sans base de comparaison"""
    if not previous:
        return None
    evolution = (float(current) - float(previous)) / float(previous) * 100
    return Evolution(value=abs(evolution), is_positive=evolution >= 0)
