import asyncio

from produtividade.errors import ServiceError
from produtividade.orchestrator import ImportOrchestrator
from produtividade.period import Period
from produtividade.store import ProductivityStore
from produtividade.types import ImportState

from tests.helpers import FakeExtractionService, response_json

FEV = Period(2026, "fev")


def _csv(tmp_path, name="fev.csv", content="Despachos;5\n"):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_successful_import_runs_stages_in_order(tmp_path, cfg):
    store = ProductivityStore({FEV: {2: 1}})
    orchestrator = ImportOrchestrator(store, FakeExtractionService(response_json()), cfg)

    outcome = asyncio.run(orchestrator.merge_import(str(_csv(tmp_path))))

    assert outcome.ok
    assert [s.name for s in outcome.steps] == ["reading", "extracting", "normalizing", "merging"]
    assert orchestrator.history == [
        ImportState.READING,
        ImportState.EXTRACTING,
        ImportState.NORMALIZING,
        ImportState.MERGING,
        ImportState.IDLE,
    ]
    assert store.record(FEV) == {1: 5, 2: 1}
    assert outcome.suggested_server_name == "J. SILVA"
    assert outcome.suggested_year == 2026
    assert orchestrator.import_error is None
    assert not orchestrator.is_importing


def test_text_files_are_sent_as_text(tmp_path, cfg):
    service = FakeExtractionService(response_json())
    orchestrator = ImportOrchestrator(ProductivityStore(), service, cfg)
    asyncio.run(orchestrator.merge_import(str(_csv(tmp_path, content="Mandado;1"))))
    request = service.requests[0]
    assert not request.is_binary
    assert "Mandado;1" in request.text


def test_binary_files_are_sent_inline(tmp_path, cfg):
    path = tmp_path / "relatorio.pdf"
    path.write_bytes(b"%PDF-1.4 fake")
    service = FakeExtractionService(response_json())
    orchestrator = ImportOrchestrator(ProductivityStore(), service, cfg)
    asyncio.run(orchestrator.merge_import(str(path)))
    request = service.requests[0]
    assert request.is_binary
    assert request.mime_type == "application/pdf"


def test_normalization_failure_leaves_store_untouched(tmp_path, cfg):
    store = ProductivityStore({FEV: {1: 11}})
    service = FakeExtractionService(response_json(month="smarch"))
    orchestrator = ImportOrchestrator(store, service, cfg)

    outcome = asyncio.run(orchestrator.merge_import(str(_csv(tmp_path))))

    assert not outcome.ok
    assert outcome.error_kind == "period"
    assert "smarch" in orchestrator.import_error
    assert store.to_document() == {"2026-fev": {"1": 11}}
    assert ImportState.MERGING not in orchestrator.history
    assert orchestrator.history[-2:] == [ImportState.FAILED, ImportState.IDLE]


def test_service_failure_is_reported_not_raised(tmp_path, cfg):
    service = FakeExtractionService(error=ConnectionError("offline"))
    orchestrator = ImportOrchestrator(ProductivityStore(), service, cfg)
    outcome = asyncio.run(orchestrator.merge_import(str(_csv(tmp_path))))
    assert isinstance(outcome.error, ServiceError)
    assert orchestrator.import_error == ServiceError().user_message
    assert [s.ok for s in outcome.steps] == [True, False]


def test_missing_file_fails_while_reading(tmp_path, cfg):
    service = FakeExtractionService(response_json())
    orchestrator = ImportOrchestrator(ProductivityStore(), service, cfg)
    outcome = asyncio.run(orchestrator.merge_import(str(tmp_path / "nada.pdf")))
    assert outcome.error_kind == "file"
    assert service.requests == []


def test_empty_extraction_message(tmp_path, cfg):
    service = FakeExtractionService(response_json(data=[{"taskId": 1, "quantity": 0}]))
    orchestrator = ImportOrchestrator(ProductivityStore(), service, cfg)
    outcome = asyncio.run(orchestrator.merge_import(str(_csv(tmp_path))))
    assert outcome.error_kind == "empty"
    assert orchestrator.import_error.startswith("Não conseguimos extrair")


def test_error_slot_is_cleared_by_next_import(tmp_path, cfg):
    service = FakeExtractionService("lixo")
    orchestrator = ImportOrchestrator(ProductivityStore(), service, cfg)
    asyncio.run(orchestrator.merge_import(str(_csv(tmp_path))))
    assert orchestrator.import_error is not None
    service.response = response_json()
    asyncio.run(orchestrator.merge_import(str(_csv(tmp_path))))
    assert orchestrator.import_error is None


def test_second_import_while_busy_is_rejected(tmp_path, cfg):
    class SlowService(FakeExtractionService):
        async def extract(self, request):
            await asyncio.sleep(0.05)
            return await super().extract(request)

    store = ProductivityStore()
    service = SlowService(response_json())
    orchestrator = ImportOrchestrator(store, service, cfg)
    path = str(_csv(tmp_path))

    async def scenario():
        first = asyncio.create_task(orchestrator.merge_import(path))
        await asyncio.sleep(0.01)
        assert orchestrator.is_importing
        second = await orchestrator.merge_import(path)
        return await first, second

    first, second = asyncio.run(scenario())
    assert first.ok
    assert second.error_kind == "busy"
    assert len(service.requests) == 1
    assert store.record(FEV) == {1: 5}


def test_missing_year_uses_default_year(tmp_path, cfg):
    service = FakeExtractionService('{"month": "mar", "data": [{"taskId": 4, "quantity": 2}]}')
    store = ProductivityStore()
    orchestrator = ImportOrchestrator(store, service, cfg, default_year=lambda: 2027)
    outcome = asyncio.run(orchestrator.merge_import(str(_csv(tmp_path))))
    assert outcome.ok
    assert outcome.suggested_year is None
    assert store.get_count(Period(2027, "mar"), 4) == 2
