"""Controle de produtividade: compteurs mensuels, points pondérés et import de documents.

This package provides:
- The fixed task catalog and the period model (year + month code)
- The productivity store and its JSON persistence
- The extraction service wrapper (OpenAI Responses API) and the response normalizer
- An import orchestrator (read → extract → normalize → merge)
- Report builders and writers
- A CLI to enter counts, import documents and export reports
"""

__all__ = [
    "catalog",
    "period",
    "store",
    "storage",
    "normalizer",
    "extraction_service",
    "orchestrator",
    "tracker",
    "reports",
    "writer",
]
