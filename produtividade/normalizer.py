"""
Normalisation des réponses du service d'extraction.

Point de passage unique entre la sortie (non fiable) du modèle et le stockage:
seuls des enregistrements valides et non vides en sortent, et chaque échec est
typé pour que l'orchestrateur affiche un message exploitable.
"""

import json
import logging
import math
import re
from typing import Any, Dict, Optional

from .errors import (
    EmptyExtractionError,
    ExtractionFormatError,
    ImportFailure,
    UnrecognizedPeriodError,
)
from .period import Period, normalize_month_token
from .types import ExtractedRecord, NormalizationResult

logger = logging.getLogger(__name__)


def _strip_fences_and_think(raw: str) -> str:
    s = raw.strip()
    s = re.sub(r"<think>[\s\S]*?</think>", "", s)
    s = s.strip()
    if s.startswith("```json"):
        s = s[7:]
    if s.startswith("```"):
        s = s[3:]
    if s.endswith("```"):
        s = s[:-3]
    return s.strip()


def _extract_json_object(s: str) -> Optional[str]:
    start = s.find("{")
    end = s.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return s[start : end + 1]


def _as_int(value: Any) -> Optional[int]:
    """Entier strict: nombres entiers ou chaînes numériques; None sinon."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                number = float(text.replace(",", "."))
            except ValueError:
                return None
            return int(number) if math.isfinite(number) else None
    return None


def _decode_payload(raw: str) -> Dict[str, Any]:
    cleaned = _strip_fences_and_think(raw or "")
    json_str = _extract_json_object(cleaned) or cleaned
    try:
        data = json.loads(json_str)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("Réponse d'extraction non JSON: %s", exc)
        raise ExtractionFormatError(raw_text=raw) from exc
    if not isinstance(data, dict):
        raise ExtractionFormatError(raw_text=raw)
    return data


def _collect_entries(data: Any, raw: str) -> Dict[int, int]:
    if isinstance(data, dict):
        # Forme {"<id>": quantité} demandée par l'invite texte.
        items = [{"taskId": key, "quantity": value} for key, value in data.items()]
    elif isinstance(data, list):
        items = data
    else:
        raise ExtractionFormatError(raw_text=raw)

    entries: Dict[int, int] = {}
    for item in items:
        if not isinstance(item, dict):
            continue
        task_id = _as_int(item.get("taskId"))
        quantity = _as_int(item.get("quantity"))
        if task_id is None or task_id <= 0:
            continue
        if quantity is None or quantity <= 0:
            continue
        entries[task_id] = quantity
    return entries


def _resolve_year(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    year = _as_int(value)
    if year is None or year <= 0:
        raise UnrecognizedPeriodError(value)
    return year


def parse_extraction(raw: str, default_year: Optional[int] = None) -> ExtractedRecord:
    """
    Transforme le texte brut du service en `ExtractedRecord`.

    Lève `ExtractionFormatError`, `UnrecognizedPeriodError` ou `EmptyExtractionError`.
    `default_year` sert quand le document ne fournit pas d'année.
    """
    payload = _decode_payload(raw)

    if "data" not in payload:
        raise ExtractionFormatError(raw_text=raw)
    entries = _collect_entries(payload["data"], raw)

    raw_month = payload.get("month")
    month = normalize_month_token(raw_month)
    if month is None:
        raise UnrecognizedPeriodError(raw_month)

    year = _resolve_year(payload.get("year"))
    year_supplied = year is not None
    if year is None:
        if default_year is None:
            raise UnrecognizedPeriodError(payload.get("year"))
        year = default_year

    if not entries:
        raise EmptyExtractionError()

    server_name = payload.get("serverName")
    if not isinstance(server_name, str) or not server_name.strip():
        server_name = None
    else:
        server_name = server_name.strip()

    return ExtractedRecord(
        period=Period(year=year, month=month),
        entries=entries,
        server_name=server_name,
        year_supplied=year_supplied,
    )


def normalize_extraction(raw: str, default_year: Optional[int] = None) -> NormalizationResult:
    """Variante sans exception: renvoie un résultat étiqueté (record ou error)."""
    try:
        return NormalizationResult(record=parse_extraction(raw, default_year))
    except ImportFailure as exc:
        return NormalizationResult(error=exc)
