import datetime as dt
from typing import Iterable, Optional

# Jours fériés (YYYY-MM-DD), carnaval 2026 inclus.
HOLIDAYS = frozenset(
    {
        "2026-02-16", "2026-02-17", "2026-02-18",
        "2026-01-01", "2026-04-03", "2026-04-21", "2026-05-01", "2026-06-04",
        "2026-09-07", "2026-10-12", "2026-11-02", "2026-11-15", "2026-11-20",
        "2026-12-25",
    }
)

TRACKING_START = dt.date(2026, 2, 1)


def business_days(start: dt.date, end: dt.date, holidays: Iterable[str] = HOLIDAYS) -> int:
    """Nombre de jours ouvrés entre `start` et `end` inclus (hors week-ends et fériés)."""
    excluded = set(holidays)
    count = 0
    day = start
    while day <= end:
        if day.weekday() < 5 and day.isoformat() not in excluded:
            count += 1
        day += dt.timedelta(days=1)
    return count


def default_days_worked(today: Optional[dt.date] = None) -> int:
    """Jours ouvrés depuis le début du suivi jusqu'à la veille."""
    today = today or dt.date.today()
    yesterday = today - dt.timedelta(days=1)
    return business_days(TRACKING_START, yesterday)
