from dataclasses import dataclass
from typing import Dict, Optional

from .catalog import MONTHS


# Noms complets en portugais acceptés en plus des sigles (vocabulaire fermé).
FULL_MONTH_NAMES: Dict[str, str] = {
    "janeiro": "jan",
    "fevereiro": "fev",
    "março": "mar",
    "marco": "mar",
    "abril": "abr",
    "maio": "mai",
    "junho": "jun",
    "julho": "jul",
    "agosto": "ago",
    "setembro": "set",
    "outubro": "out",
    "novembro": "nov",
    "dezembro": "dez",
}


@dataclass(frozen=True)
class Period:
    """Période suivie: une année et un sigle de mois parmi `MONTHS`."""
    year: int
    month: str

    def __post_init__(self) -> None:
        if self.month not in MONTHS:
            raise ValueError(f"Sigle de mois inconnu: {self.month!r}")

    @property
    def key(self) -> str:
        return encode_period_key(self)

    def __str__(self) -> str:
        return f"{self.month.upper()}/{self.year}"


def month_index(month: str) -> int:
    return MONTHS.index(month)


def order(period: Period) -> int:
    """Clé d'ordre total: année * 12 + rang du mois."""
    return period.year * 12 + month_index(period.month)


def in_range(period: Period, start: Period, end: Period) -> bool:
    """Vrai si `period` est compris entre `start` et `end`, bornes incluses."""
    return order(start) <= order(period) <= order(end)


def normalize_month_token(raw: object) -> Optional[str]:
    """
    Ramène un libellé de mois à son sigle canonique.

    Accepte les sigles (insensible à la casse) et les noms complets en portugais.
    Toute autre valeur (y compris "13" ou une chaîne libre) renvoie None.
    """
    if not isinstance(raw, str):
        return None
    token = raw.strip().lower()
    if token in MONTHS:
        return token
    return FULL_MONTH_NAMES.get(token)


def encode_period_key(period: Period) -> str:
    return f"{period.year}-{period.month}"


def decode_period_key(key: str) -> Period:
    year_str, sep, month = key.partition("-")
    if not sep:
        raise ValueError(f"Clé de période invalide: {key!r}")
    try:
        year = int(year_str)
    except ValueError as exc:
        raise ValueError(f"Clé de période invalide: {key!r}") from exc
    return Period(year=year, month=month)
