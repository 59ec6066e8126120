import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional

from .catalog import SEED_COUNTS, SEED_PERIOD_KEY
from .errors import PersistenceError
from .period import Period, decode_period_key
from .store import ProductivityStore
from .types import Settings
from .workdays import default_days_worked

logger = logging.getLogger(__name__)

STORAGE_FILE = "produtividade_data_v1.json"
SETTINGS_FILE = "produtividade_settings_v1.json"

DEFAULT_DAILY_GOAL = Decimal("10.1")


def write_json(path: Path, data: Any) -> None:
    """Écriture atomique: fichier temporaire puis remplacement."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(path)
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Échec d'écriture de %s: %s", path, exc)
        raise PersistenceError(f"Impossible d'enregistrer {path.name}: {exc}") from exc


def read_json(path: Path) -> Optional[Any]:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Échec de lecture de %s: %s", path, exc)
        raise PersistenceError(f"Impossible de lire {path.name}: {exc}") from exc


def default_settings() -> Settings:
    return Settings(daily_effort_goal=DEFAULT_DAILY_GOAL, days_worked=default_days_worked())


def settings_to_document(settings: Settings) -> Dict[str, Any]:
    return {
        "dailyEffortGoal": str(settings.daily_effort_goal),
        "daysWorked": settings.days_worked,
        "filterStart": {"year": settings.filter_start.year, "month": settings.filter_start.month},
        "filterEnd": {"year": settings.filter_end.year, "month": settings.filter_end.month},
        "isFilterActive": settings.is_filter_active,
        "serverName": settings.server_name,
    }


def _period_from_document(value: Any, fallback: Period) -> Period:
    if isinstance(value, dict):
        try:
            return Period(year=int(value["year"]), month=str(value["month"]))
        except (KeyError, TypeError, ValueError):
            return fallback
    if isinstance(value, str):
        try:
            return decode_period_key(value)
        except ValueError:
            return fallback
    return fallback


def settings_from_document(document: Optional[Dict[str, Any]]) -> Settings:
    """Les valeurs enregistrées priment sur les valeurs par défaut; le reste est ignoré."""
    settings = default_settings()
    if not isinstance(document, dict):
        return settings

    if "dailyEffortGoal" in document:
        try:
            goal = Decimal(str(document["dailyEffortGoal"]))
        except InvalidOperation:
            goal = None
        if goal is not None and goal.is_finite() and goal >= 0:
            settings.daily_effort_goal = goal
        else:
            logger.warning("dailyEffortGoal invalide ignoré: %r", document["dailyEffortGoal"])
    if "daysWorked" in document:
        try:
            settings.days_worked = int(document["daysWorked"])
        except (TypeError, ValueError):
            logger.warning("daysWorked invalide ignoré: %r", document["daysWorked"])
    settings.filter_start = _period_from_document(document.get("filterStart"), settings.filter_start)
    settings.filter_end = _period_from_document(document.get("filterEnd"), settings.filter_end)
    if isinstance(document.get("isFilterActive"), bool):
        settings.is_filter_active = document["isFilterActive"]
    settings.server_name = str(document.get("serverName") or "")
    return settings


class JsonStateStorage:
    """Deux documents JSON indépendants: compteurs et réglages."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self.store_path = self.data_dir / STORAGE_FILE
        self.settings_path = self.data_dir / SETTINGS_FILE

    def load_store(self) -> ProductivityStore:
        document = read_json(self.store_path)
        if document is None:
            logger.info("Aucune donnée enregistrée, initialisation avec %s", SEED_PERIOD_KEY)
            return ProductivityStore({decode_period_key(SEED_PERIOD_KEY): dict(SEED_COUNTS)})
        if not isinstance(document, dict):
            raise PersistenceError(f"{self.store_path.name}: document inattendu")
        return ProductivityStore.from_document(document)

    def save_store(self, store: ProductivityStore) -> Path:
        write_json(self.store_path, store.to_document())
        return self.store_path

    def load_settings(self) -> Settings:
        return settings_from_document(read_json(self.settings_path))

    def save_settings(self, settings: Settings) -> Path:
        write_json(self.settings_path, settings_to_document(settings))
        return self.settings_path

