import asyncio
import base64
import io
import json
from types import SimpleNamespace

import pytest
from PIL import Image

from produtividade.catalog import DOCUMENT_LABELS, TASKS
from produtividade.errors import ServiceError
from produtividade.extraction_service import (
    OUTPUT_SCHEMA,
    OpenAIExtractionService,
    build_document_request,
    build_text_request,
    is_text_file,
    mime_type_for,
)


class FakeResponses:
    def __init__(self, output_text="", error=None):
        self.output_text = output_text
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(output_text=self.output_text)


def _client(responses):
    return SimpleNamespace(responses=responses)


def test_file_kind_dispatch(tmp_path):
    assert is_text_file(tmp_path / "a.csv")
    assert is_text_file(tmp_path / "a.TXT")
    assert not is_text_file(tmp_path / "a.pdf")
    assert not is_text_file(tmp_path / "a.ods")
    assert mime_type_for(tmp_path / "a.ods") == "application/vnd.oasis.opendocument.spreadsheet"
    assert mime_type_for(tmp_path / "a.unknown") == "application/pdf"


def test_text_request_carries_content_and_task_table():
    request = build_text_request("fev.csv", "Despachos;11")
    assert not request.is_binary
    assert request.text.startswith("Conteúdo do arquivo fev.csv:")
    assert "Despachos;11" in request.text
    for task in TASKS:
        assert f"{task.id}: {task.name}" in request.instructions


def test_document_request_is_base64_with_label_mapping(cfg):
    request = build_document_request("rel.pdf", b"%PDF-1.4 fake", "application/pdf", cfg)
    assert request.is_binary
    assert base64.b64decode(request.data_b64) == b"%PDF-1.4 fake"
    assert request.mime_type == "application/pdf"
    for label, task_id in DOCUMENT_LABELS:
        assert f'"{label}" -> ID {task_id}' in request.instructions


def test_image_request_is_reencoded_as_png():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), "white").save(buf, format="JPEG")
    request = build_document_request("scan.jpg", buf.getvalue(), "image/jpeg")
    assert request.mime_type == "image/png"
    assert len(request.images_b64) == 1
    assert base64.b64decode(request.images_b64[0]).startswith(b"\x89PNG")


def test_extract_sends_strict_schema(cfg):
    responses = FakeResponses(output_text='{"month": "fev"}')
    service = OpenAIExtractionService(cfg, client=_client(responses))
    raw = asyncio.run(service.extract(build_text_request("a.csv", "x")))

    assert raw == '{"month": "fev"}'
    call = responses.calls[0]
    assert call["model"] == cfg.model
    fmt = call["text"]["format"]
    assert fmt["type"] == "json_schema" and fmt["strict"] is True
    assert fmt["schema"] == OUTPUT_SCHEMA
    content = call["input"][0]["content"]
    assert content[-1]["type"] == "input_text"


def test_extract_inlines_binary_documents(cfg):
    responses = FakeResponses(output_text="{}")
    service = OpenAIExtractionService(cfg, client=_client(responses))
    request = build_document_request("rel.pdf", b"%PDF", "application/pdf", cfg)
    asyncio.run(service.extract(request))

    file_part = responses.calls[0]["input"][0]["content"][0]
    assert file_part["type"] == "input_file"
    assert file_part["file_data"].startswith("data:application/pdf;base64,")


def test_extract_failure_is_a_service_error_without_retry(cfg):
    responses = FakeResponses(error=RuntimeError("quota"))
    service = OpenAIExtractionService(cfg, client=_client(responses))
    with pytest.raises(ServiceError):
        asyncio.run(service.extract(build_text_request("a.csv", "x")))
    assert len(responses.calls) == 1


def test_missing_credentials_surface_as_service_error(cfg, monkeypatch):
    for var in ("AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    service = OpenAIExtractionService(cfg)
    with pytest.raises(ServiceError):
        asyncio.run(service.extract(build_text_request("a.csv", "x")))


def test_output_schema_requires_all_fields():
    assert set(OUTPUT_SCHEMA["required"]) == {"serverName", "month", "year", "data"}
    assert json.dumps(OUTPUT_SCHEMA)


def test_unlisted_types_keep_their_own_mime(tmp_path):
    docx = mime_type_for(tmp_path / "relatorio.docx")
    assert docx == "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    assert not is_text_file(tmp_path / "relatorio.docx")
    assert mime_type_for(tmp_path / "relatorio.json") == "application/json"
    assert is_text_file(tmp_path / "relatorio.json")
    assert mime_type_for(tmp_path / "scan.gif") == "image/gif"
