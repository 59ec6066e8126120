import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, Optional

from .catalog import YEARS
from .errors import ImportFailure, PersistenceError
from .extraction_service import ExtractionService, OpenAIExtractionService
from .orchestrator import ImportOrchestrator
from .period import Period
from .storage import JsonStateStorage
from .store import ProductivityStore, parse_decimal_or_zero, total_effort, total_points
from .types import ImportOutcome, Settings, TrackerConfig

logger = logging.getLogger(__name__)


class ProductivityTracker:
    """
    Façade exposée à l'interface: saisie, import, totaux, remise à zéro.

    Toute mutation passe par le même chemin et est persistée immédiatement.
    Les échecs de persistance remontent en `PersistenceError` (sauf pendant un
    import, où ils sont portés par `import_error`).
    """

    def __init__(
        self,
        cfg: TrackerConfig,
        service: Optional[ExtractionService] = None,
        storage: Optional[JsonStateStorage] = None,
    ) -> None:
        self.cfg = cfg
        self.storage = storage or JsonStateStorage(cfg.data_dir)
        self.store: ProductivityStore = self.storage.load_store()
        self.settings: Settings = self.storage.load_settings()
        self.active_year: int = YEARS[0]
        self.importer = ImportOrchestrator(
            self.store,
            service or OpenAIExtractionService(cfg),
            cfg,
            default_year=lambda: self.active_year,
        )

    # -- état de l'import --------------------------------------------------

    @property
    def is_importing(self) -> bool:
        return self.importer.is_importing

    @property
    def import_error(self) -> Optional[str]:
        return self.importer.import_error

    # -- persistance -------------------------------------------------------

    def _persist_store(self) -> None:
        self.storage.save_store(self.store)
        # Plus aucune donnée: le nom du serveur n'a plus de sens.
        if not self.store.has_any_data() and self.settings.server_name:
            self.settings.server_name = ""
            self.storage.save_settings(self.settings)

    def _persist_settings(self) -> None:
        self.storage.save_settings(self.settings)

    def save(self) -> None:
        self.storage.save_store(self.store)
        self.storage.save_settings(self.settings)

    # -- saisie ------------------------------------------------------------

    def get_count(self, period: Period, task_id: int) -> int:
        return self.store.get_count(period, task_id)

    def set_count(self, period: Period, task_id: int, value: object) -> int:
        count = self.store.set_count(period, task_id, value)
        self._persist_store()
        return count

    def update_settings(self, **changes: Any) -> Settings:
        if "server_name" in changes and changes["server_name"] is not None:
            changes["server_name"] = str(changes["server_name"]).upper()
        if "daily_effort_goal" in changes:
            changes["daily_effort_goal"] = max(Decimal("0"), parse_decimal_or_zero(changes["daily_effort_goal"]))
        self.settings = replace(self.settings, **changes)
        self._persist_settings()
        return self.settings

    # -- import ------------------------------------------------------------

    async def merge_import(self, file_path: str) -> ImportOutcome:
        """Importe un document; ne lève jamais, l'échec est dans `import_error`."""
        outcome = await self.importer.merge_import(file_path)
        if not outcome.ok:
            return outcome

        if outcome.suggested_server_name:
            self.settings.server_name = outcome.suggested_server_name
        if outcome.suggested_year is not None:
            self.active_year = outcome.suggested_year
        try:
            self.save()
        except PersistenceError as exc:
            outcome.error = ImportFailure(str(exc))
            self.importer.import_error = outcome.error.user_message
        return outcome

    # -- totaux ------------------------------------------------------------

    def totals(self) -> Dict[int, int]:
        s = self.settings
        return self.store.totals(s.is_filter_active, s.filter_start, s.filter_end)

    def total_effort(self) -> int:
        return total_effort(self.totals())

    def total_points(self) -> Decimal:
        return total_points(self.totals())

    def target_points(self) -> Decimal:
        return self.settings.daily_effort_goal * self.settings.days_worked

    def percentage_reached(self) -> Decimal:
        target = self.target_points()
        if target <= 0:
            return Decimal("0")
        return self.total_points() / target * 100

    # -- remise à zéro -----------------------------------------------------

    def reset(self, confirm: bool = False) -> None:
        """Efface toutes les données (irréversible). Exige `confirm=True`."""
        if not confirm:
            raise ValueError("La remise à zéro doit être confirmée explicitement.")
        self.store.reset()
        self.settings.server_name = ""
        self.settings.is_filter_active = False
        self.save()
        logger.info("Données de productivité effacées")
