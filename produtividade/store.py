import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Mapping, Optional

from .catalog import TASKS, task_ids, unit_value
from .period import Period, decode_period_key, encode_period_key, in_range

logger = logging.getLogger(__name__)

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def parse_int_or_zero(value: object) -> int:
    """
    Conversion tolérante vers un entier.

    Reprend le comportement d'une saisie de tableur: préfixe entier lu ("12abc" → 12),
    flottants tronqués, tout le reste vaut 0. Ne lève jamais.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return 0
    if isinstance(value, str):
        match = _INT_PREFIX.match(value)
        return int(match.group(1)) if match else 0
    return 0


def parse_decimal_or_zero(value: object) -> Decimal:
    """
    Conversion tolérante vers un décimal fini (objectif journalier).

    Virgule décimale acceptée; valeurs non numériques, NaN et infinis valent 0.
    """
    if isinstance(value, bool):
        return Decimal(int(value))
    try:
        number = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        return Decimal("0")
    return number if number.is_finite() else Decimal("0")


class ProductivityStore:
    """Compteurs par période puis par tâche. Clé composée `Period` en mémoire."""

    def __init__(self, records: Optional[Mapping[Period, Mapping[int, int]]] = None) -> None:
        self._records: Dict[Period, Dict[int, int]] = {
            period: dict(counts) for period, counts in (records or {}).items()
        }

    def periods(self) -> List[Period]:
        return list(self._records)

    def record(self, period: Period) -> Dict[int, int]:
        return dict(self._records.get(period, {}))

    def get_count(self, period: Period, task_id: int) -> int:
        return self._records.get(period, {}).get(task_id, 0)

    def set_count(self, period: Period, task_id: int, value: object) -> int:
        count = max(0, parse_int_or_zero(value))
        updated = dict(self._records.get(period, {}))
        updated[task_id] = count
        self._records[period] = updated
        return count

    def merge_record(self, period: Period, entries: Mapping[int, int]) -> None:
        """Écrase (sans cumuler) les compteurs cités; les autres tâches restent intactes."""
        updated = dict(self._records.get(period, {}))
        updated.update({int(task_id): int(qty) for task_id, qty in entries.items()})
        self._records[period] = updated
        logger.debug("Fusion %s: %d tâche(s)", encode_period_key(period), len(entries))

    def totals(
        self,
        filter_active: bool = False,
        start: Optional[Period] = None,
        end: Optional[Period] = None,
    ) -> Dict[int, int]:
        if filter_active and (start is None or end is None):
            raise ValueError("Un filtre actif exige une période de début et de fin.")
        selected: Iterable[Period] = (
            p for p in self._records if not filter_active or in_range(p, start, end)
        )
        sums = {tid: 0 for tid in task_ids()}
        for period in selected:
            for tid in sums:
                sums[tid] += self.get_count(period, tid)
        return sums

    def has_any_data(self) -> bool:
        return any(count > 0 for counts in self._records.values() for count in counts.values())

    def reset(self) -> None:
        self._records = {}

    def to_document(self) -> Dict[str, Dict[str, int]]:
        return {
            encode_period_key(period): {str(tid): count for tid, count in counts.items()}
            for period, counts in self._records.items()
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Mapping[str, object]]) -> "ProductivityStore":
        records: Dict[Period, Dict[int, int]] = {}
        for key, counts in document.items():
            try:
                period = decode_period_key(key)
            except ValueError:
                logger.warning("Clé de période ignorée au chargement: %r", key)
                continue
            if not isinstance(counts, Mapping):
                logger.warning("Compteurs ignorés pour %s: %r", key, counts)
                continue
            records[period] = {
                int(tid): max(0, parse_int_or_zero(count))
                for tid, count in counts.items()
                if str(tid).lstrip("-").isdigit()
            }
        return cls(records)


def total_effort(totals: Mapping[int, int]) -> int:
    return sum(totals.values())


def total_points(totals: Mapping[int, int]) -> Decimal:
    return sum((totals.get(task.id, 0) * task.unit_value for task in TASKS), Decimal("0"))


def task_points(totals: Mapping[int, int], task_id: int) -> Decimal:
    return totals.get(task_id, 0) * unit_value(task_id)
