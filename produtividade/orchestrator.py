import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError

from .errors import ImportBusyError, ImportFailure, ServiceError, UnsupportedFileError
from .extraction_service import (
    ExtractionService,
    build_document_request,
    build_text_request,
    is_text_file,
    mime_type_for,
)
from .normalizer import normalize_extraction
from .store import ProductivityStore
from .types import (
    ExtractedRecord,
    ExtractionRequest,
    ImportOutcome,
    ImportState,
    StepResult,
    TrackerConfig,
)

logger = logging.getLogger(__name__)


def _read_upload(path: Path, cfg: Optional[TrackerConfig]) -> ExtractionRequest:
    if not path.is_file():
        raise UnsupportedFileError(f"Arquivo não encontrado: {path.name}")
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise UnsupportedFileError() from exc
    if not content:
        raise UnsupportedFileError(f"O arquivo {path.name} está vazio.")

    mime = mime_type_for(path)
    if is_text_file(path, mime):
        return build_text_request(path.name, content.decode("utf-8", errors="replace"))
    try:
        return build_document_request(path.name, content, mime, cfg)
    except (OSError, ValueError, PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError) as exc:
        # PIL / pdf2image: contenu binaire illisible
        raise UnsupportedFileError(f"Não foi possível ler o arquivo {path.name}.") from exc


class ImportOrchestrator:
    """
    Orchestrateur d'import: lecture → extraction → normalisation → fusion.

    Un seul import à la fois; une seconde demande pendant un import est refusée,
    pas mise en file. `merge_import` ne lève jamais: l'échec est porté par le
    résultat et par `import_error`.
    """

    def __init__(
        self,
        store: ProductivityStore,
        service: ExtractionService,
        cfg: Optional[TrackerConfig] = None,
        default_year: Callable[[], int] = lambda: 2026,
    ) -> None:
        self.store = store
        self.service = service
        self.cfg = cfg
        self.default_year = default_year
        self.state = ImportState.IDLE
        self.history: List[ImportState] = []
        self.import_error: Optional[str] = None

    @property
    def is_importing(self) -> bool:
        return self.state is not ImportState.IDLE

    def _enter(self, state: ImportState) -> None:
        self.state = state
        self.history.append(state)

    async def merge_import(self, file_path: str) -> ImportOutcome:
        path = Path(file_path).expanduser()
        outcome = ImportOutcome(file=str(path))

        if self.is_importing:
            outcome.error = ImportBusyError()
            logger.warning("Import refusé (déjà en cours): %s", path.name)
            return outcome

        self.history = []
        self.import_error = None
        try:
            await self._run(path, outcome)
        except ImportFailure as exc:
            outcome.error = exc
        except Exception as exc:
            logger.exception("Erreur inattendue pendant l'import de %s", path.name)
            outcome.error = ImportFailure()
            outcome.steps.append(
                StepResult(name=self.state.value, ok=False, duration_sec=0.0, error=str(exc))
            )

        if outcome.error is not None:
            self._enter(ImportState.FAILED)
            self.import_error = outcome.error.user_message
            logger.warning("Import échoué (%s): %s", outcome.error.kind, outcome.error)
        self._enter(ImportState.IDLE)
        return outcome

    async def _step(self, outcome: ImportOutcome, state: ImportState, func, *args):
        self._enter(state)
        t0 = time.time()
        try:
            result = await func(*args)
        except ImportFailure as exc:
            outcome.steps.append(
                StepResult(name=state.value, ok=False, duration_sec=time.time() - t0, error=str(exc))
            )
            raise
        outcome.steps.append(StepResult(name=state.value, ok=True, duration_sec=time.time() - t0))
        return result

    async def _extract(self, request: ExtractionRequest) -> str:
        try:
            return await self.service.extract(request)
        except ImportFailure:
            raise
        except Exception as exc:
            raise ServiceError() from exc

    async def _normalize(self, raw: str) -> ExtractedRecord:
        result = normalize_extraction(raw, default_year=self.default_year())
        if result.error is not None:
            raise result.error
        return result.record

    async def _merge(self, record: ExtractedRecord) -> None:
        self.store.merge_record(record.period, record.entries)

    async def _run(self, path: Path, outcome: ImportOutcome) -> None:
        # 1) Lecture du fichier et construction de la requête
        request = await self._step(
            outcome, ImportState.READING, asyncio.to_thread, _read_upload, path, self.cfg
        )

        # 2) Appel unique au service d'extraction
        raw = await self._step(outcome, ImportState.EXTRACTING, self._extract, request)

        # 3) Normalisation: aucune écriture en cas d'échec
        record = await self._step(outcome, ImportState.NORMALIZING, self._normalize, raw)

        # 4) Fusion, exactement une fois
        await self._step(outcome, ImportState.MERGING, self._merge, record)
        outcome.record = record
        logger.info(
            "Import %s: %d tâche(s) fusionnée(s) dans %s",
            path.name,
            len(record.entries),
            record.period,
        )
