import base64
import io
import logging
import mimetypes
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from pdf2image import convert_from_bytes
from PIL import Image

from .catalog import DOCUMENT_LABELS, MONTHS, TASKS
from .errors import ConfigError, ServiceError
from .types import ExtractionRequest, TrackerConfig

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".csv", ".txt", ".tsv"}

MIME_BY_SUFFIX: Dict[str, str] = {
    ".csv": "text/csv",
    ".tsv": "text/tab-separated-values",
    ".txt": "text/plain",
    ".pdf": "application/pdf",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}

SUPPORTED_EXTS = set(MIME_BY_SUFFIX)

# Schéma de sortie imposé au modèle pour limiter la dérive en texte libre.
OUTPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "serverName": {"type": "string"},
        "month": {"type": "string"},
        "year": {"type": "number"},
        "data": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "taskId": {"type": "number"},
                    "quantity": {"type": "number"},
                },
                "required": ["taskId", "quantity"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["serverName", "month", "year", "data"],
    "additionalProperties": False,
}


def mime_type_for(path: Path) -> str:
    mime = MIME_BY_SUFFIX.get(path.suffix.lower()) or mimetypes.guess_type(path.name)[0]
    return mime or "application/pdf"


def is_text_file(path: Path, mime_type: Optional[str] = None) -> bool:
    mime = mime_type or mime_type_for(path)
    return (
        path.suffix.lower() in TEXT_SUFFIXES
        or mime.startswith("text/")
        or mime == "application/json"
    )


def _get_client(cfg: TrackerConfig) -> AsyncOpenAI:
    endpoint = os.getenv("AZURE_OPENAI_ENDPOINT")
    if endpoint:
        api_key = os.getenv("AZURE_OPENAI_API_KEY")
        if not api_key:
            raise ConfigError("AZURE_OPENAI_API_KEY non défini")
        base_url = endpoint.rstrip("/") + "/openai/v1/"
        return AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=cfg.api_timeout)

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ConfigError(
            "Variables manquantes: OPENAI_API_KEY ou AZURE_OPENAI_ENDPOINT + AZURE_OPENAI_API_KEY"
        )
    return AsyncOpenAI(api_key=api_key, timeout=cfg.api_timeout)


def build_text_instructions() -> str:
    task_table = "\n".join(f"{t.id}: {t.name}" for t in TASKS)
    return (
        "Analise o texto abaixo extraído de um arquivo e organize os dados de produtividade.\n"
        "\n"
        "Informações a extrair:\n"
        "1. Nome do Servidor.\n"
        f"2. Mês (sigla: {', '.join(MONTHS)}) e Ano.\n"
        "3. Lista de atividades e quantidades.\n"
        "\n"
        "Mapeie as atividades para estes IDs:\n"
        f"{task_table}\n"
        "\n"
        "Retorne APENAS um JSON no formato:\n"
        '{"serverName": "...", "month": "...", "year": 2026, '
        '"data": [{"taskId": ID, "quantity": QTD}]}'
    )


def build_document_instructions() -> str:
    mapping = "\n".join(f'- "{label}" -> ID {task_id}' for label, task_id in DOCUMENT_LABELS)
    parts: List[str] = []
    parts.append(
        "Você é um assistente especializado em extrair dados de relatórios de produtividade "
        "jurídica (Relatório Sintético de Teletrabalho)."
    )
    parts.append(
        "\n## INSTRUÇÕES DE EXTRAÇÃO\n"
        '1. NOME DO SERVIDOR: localizado no cabeçalho (ex: "Nome do Servidor: FULANO DE TAL").\n'
        '2. PERÍODO: identifique o mês e o ano (ex: "Data Inicial: 01/02/2026" indica Fevereiro de 2026). '
        f"Use as siglas: {', '.join(MONTHS)}.\n"
        "3. TABELA DE ATIVIDADES: extraia as tarefas e suas quantidades (Qtde).\n"
    )
    parts.append(
        "\n## MAPEAMENTO OBRIGATÓRIO (nome no documento -> nosso ID)\n"
        f"{mapping}\n"
    )
    parts.append(
        "\n## FORMATO DE SAÍDA (JSON)\n"
        "{\n"
        '  "serverName": "Nome",\n'
        '  "month": "sigla",\n'
        '  "year": 2026,\n'
        '  "data": [\n'
        '    {"taskId": ID_NUMERICO, "quantity": QTD_NUMERICA}\n'
        "  ]\n"
        "}\n"
        "\n"
        "Atenção: ignore tarefas com quantidade zero. Retorne APENAS o JSON."
    )
    return "\n".join(parts)


def build_text_request(filename: str, text: str) -> ExtractionRequest:
    return ExtractionRequest(
        instructions=build_text_instructions(),
        text=f"Conteúdo do arquivo {filename}:\n\n{text}",
        filename=filename,
        mime_type="text/plain",
    )


def _png_b64(img: Image.Image) -> str:
    with io.BytesIO() as buf:
        img.save(buf, format="PNG")
        return base64.b64encode(buf.getvalue()).decode("utf-8")


def build_document_request(
    filename: str,
    content: bytes,
    mime_type: str,
    cfg: Optional[TrackerConfig] = None,
) -> ExtractionRequest:
    """
    Construit la requête binaire pour un document.

    - Images: réencodées en PNG.
    - PDF en mode "pages": chaque page rendue en PNG (pdf2image), envoyées dans la même requête.
    - Autres (PDF en mode "file", tableurs): contenu brut encodé en base64.
    """
    request = ExtractionRequest(
        instructions=build_document_instructions(),
        filename=filename,
        mime_type=mime_type,
    )
    if mime_type.startswith("image/"):
        with Image.open(io.BytesIO(content)) as img:
            request.images_b64 = [_png_b64(img)]
        request.mime_type = "image/png"
    elif mime_type == "application/pdf" and cfg is not None and cfg.pdf_mode == "pages":
        pages = convert_from_bytes(content, dpi=cfg.dpi)
        request.images_b64 = [_png_b64(page) for page in pages]
        request.mime_type = "image/png"
    else:
        request.data_b64 = base64.b64encode(content).decode("utf-8")
    return request


def _request_input(request: ExtractionRequest) -> List[Dict[str, Any]]:
    content: List[Dict[str, Any]] = []
    if request.data_b64 is not None:
        content.append(
            {
                "type": "input_file",
                "filename": request.filename or "documento",
                "file_data": f"data:{request.mime_type};base64,{request.data_b64}",
            }
        )
    for b64 in request.images_b64:
        content.append({"type": "input_image", "image_url": f"data:image/png;base64,{b64}"})
    if request.text is not None:
        content.append({"type": "input_text", "text": request.text})
    else:
        content.append({"type": "input_text", "text": "Processe este documento conforme as instruções."})
    return [{"role": "user", "content": content}]


class ExtractionService:
    async def extract(self, request: ExtractionRequest) -> str:
        raise NotImplementedError


class OpenAIExtractionService(ExtractionService):
    """
    Service d'extraction via l'API Responses (OpenAI ou Azure OpenAI).

    Un seul appel par import, sans nouvelle tentative: toute erreur remonte en `ServiceError`.
    """

    def __init__(self, cfg: TrackerConfig, client: Optional[AsyncOpenAI] = None) -> None:
        self.cfg = cfg
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = _get_client(self.cfg)
        return self._client

    async def extract(self, request: ExtractionRequest) -> str:
        try:
            resp = await self.client.responses.create(
                model=self.cfg.model,
                instructions=request.instructions,
                input=_request_input(request),
                text={
                    "format": {
                        "type": "json_schema",
                        "name": "productivity_record",
                        "schema": OUTPUT_SCHEMA,
                        "strict": True,
                    }
                },
            )
        except ConfigError as exc:
            raise ServiceError(f"Serviço de extração não configurado: {exc}") from exc
        except Exception as exc:
            logger.warning("Échec de l'appel au service d'extraction: %s", exc)
            raise ServiceError() from exc

        raw = resp.output_text or ""
        logger.debug("Réponse brute du service d'extraction: %s", raw)
        return raw
