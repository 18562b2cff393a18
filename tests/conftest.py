# tests/conftest.py
from collections import Counter

import pytest

from deepbook.models import GenerationResult


class ScriptedClient:
    """Stands in for CompletionClient; answers per request purpose, last answer repeats."""

    def __init__(self, script):
        self.script = {k: list(v) for k, v in script.items()}
        self.requests = []

    def complete(self, request):
        self.requests.append(request)
        queue = self.script[request.purpose]
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        return item if isinstance(item, GenerationResult) else GenerationResult.Ok(item)

    @property
    def purposes(self):
        return [r.purpose for r in self.requests]

    def count(self, purpose):
        return Counter(self.purposes)[purpose]


@pytest.fixture
def scripted():
    return ScriptedClient
