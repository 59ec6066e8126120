import json

from produtividade.extraction_service import ExtractionService


class FakeExtractionService(ExtractionService):
    """Renvoie une réponse préparée et garde les requêtes reçues."""

    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.requests = []

    async def extract(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


def response_json(**overrides):
    payload = {
        "serverName": "J. SILVA",
        "month": "Fevereiro",
        "year": 2026,
        "data": [{"taskId": 1, "quantity": 5}, {"taskId": 99, "quantity": 0}],
    }
    payload.update(overrides)
    return json.dumps(payload)
