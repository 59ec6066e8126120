from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ImportFailure
from .period import Period


@dataclass
class TrackerConfig:
    """Configuration de haut niveau du suivi et du pipeline d'import."""
    data_dir: Path
    model: str = "gpt-4.1-mini"
    pdf_mode: str = "file"          # "file" (PDF inline) | "pages" (pages rendues en PNG)
    dpi: int = 200
    api_timeout: int = 300


@dataclass
class Settings:
    daily_effort_goal: Decimal
    days_worked: int
    filter_start: Period = field(default_factory=lambda: Period(2026, "fev"))
    filter_end: Period = field(default_factory=lambda: Period(2026, "dez"))
    is_filter_active: bool = False
    server_name: str = ""


@dataclass
class ExtractedRecord:
    """Enregistrement validé issu d'un document; jamais persisté tel quel."""
    period: Period
    entries: Dict[int, int]
    server_name: Optional[str] = None
    year_supplied: bool = True


@dataclass
class NormalizationResult:
    """Résultat étiqueté de la normalisation: soit `record`, soit `error`."""
    record: Optional[ExtractedRecord] = None
    error: Optional[ImportFailure] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


class ImportState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    EXTRACTING = "extracting"
    NORMALIZING = "normalizing"
    MERGING = "merging"
    FAILED = "failed"


@dataclass
class ExtractionRequest:
    """Requête envoyée au service: texte brut, ou contenu binaire encodé en base64."""
    instructions: str
    text: Optional[str] = None
    mime_type: Optional[str] = None
    filename: Optional[str] = None
    data_b64: Optional[str] = None
    images_b64: List[str] = field(default_factory=list)

    @property
    def is_binary(self) -> bool:
        return self.data_b64 is not None or bool(self.images_b64)


@dataclass
class StepResult:
    name: str
    ok: bool
    duration_sec: float
    error: Optional[str] = None


@dataclass
class ImportOutcome:
    """Bilan d'un import; les réglages suggérés sont appliqués par l'appelant."""
    file: str
    steps: List[StepResult] = field(default_factory=list)
    record: Optional[ExtractedRecord] = None
    error: Optional[ImportFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None

    @property
    def message(self) -> Optional[str]:
        return self.error.user_message if self.error else None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error else None

    @property
    def suggested_server_name(self) -> Optional[str]:
        return self.record.server_name if self.record else None

    @property
    def suggested_year(self) -> Optional[int]:
        if self.record and self.record.year_supplied:
            return self.record.period.year
        return None
