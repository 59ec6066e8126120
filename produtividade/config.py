import os
from pathlib import Path
from typing import Optional

from .types import TrackerConfig


def load_config(
    data_dir: Optional[str] = None,
    model: Optional[str] = None,
    pdf_mode: Optional[str] = None,
    dpi: Optional[int] = None,
    api_timeout: Optional[int] = None,
) -> TrackerConfig:
    root = Path(data_dir or os.getenv("PRODUTIVIDADE_DATA_DIR", "~/.produtividade")).expanduser().resolve()
    root.mkdir(parents=True, exist_ok=True)

    mode = (pdf_mode or os.getenv("IMPORT_PDF_MODE", "file")).lower()
    if mode not in ("file", "pages"):
        raise ValueError(f"IMPORT_PDF_MODE invalide: {mode!r} (attendu: file | pages)")

    cfg = TrackerConfig(
        data_dir=root,
        model=model or os.getenv("EXTRACTION_MODEL") or os.getenv("AZURE_OPENAI_DEPLOYMENT") or "gpt-4.1-mini",
        pdf_mode=mode,
        dpi=int(dpi or int(os.getenv("VLM_DPI", "200"))),
        api_timeout=int(api_timeout or int(os.getenv("API_TIMEOUT", "300"))),
    )
    return cfg
