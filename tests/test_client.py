from types import SimpleNamespace

import httpx
import openai

from deepbook.config import PLACEHOLDER_KEY, ClientConfig
from deepbook.llm.client import CompletionClient
from deepbook.models import FailureKind, GenerationRequest

URL = "https://api.deepseek.com/v1/chat/completions"
REQUEST = GenerationRequest.of("part", ("user", "Explain futures trading."))


def _response(text):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=30),
    )


class FakeTransport:
    """Mimics `OpenAI().chat.completions.create`; plays back a list of outcomes."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self.create))

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _conn_error():
    return openai.APIConnectionError(request=httpx.Request("POST", URL))


def _status_error(code):
    req = httpx.Request("POST", URL)
    return openai.APIStatusError("server error", response=httpx.Response(code, request=req), body=None)


def _client(outcomes, **cfg):
    slept = []
    transport = FakeTransport(outcomes)
    client = CompletionClient(ClientConfig(api_key="sk-test", **cfg),
                              transport=transport, sleep=slept.append)
    return client, transport, slept


def test_first_attempt_success_sends_configured_request():
    client, transport, slept = _client([_response("Futures are contracts.")])
    result = client.complete(REQUEST)
    assert result.ok and result.text == "Futures are contracts."
    assert result.attempts == 1
    assert slept == []
    sent = transport.calls[0]
    assert sent["model"] == "deepseek-chat"
    assert sent["temperature"] == 0.7
    assert sent["max_tokens"] == 1000
    assert sent["messages"] == [{"role": "user", "content": "Explain futures trading."}]


def test_recovers_after_transient_failures_with_exponential_waits():
    k = 4
    client, transport, slept = _client([_conn_error()] * k + [_response("ok")])
    result = client.complete(REQUEST)
    assert result.ok and result.text == "ok"
    assert result.attempts == k + 1
    assert slept == [1, 2, 4, 8]
    assert sum(slept) == 2 ** k - 1


def test_gives_up_after_exactly_ten_attempts():
    client, transport, slept = _client([_status_error(503)] * 12)
    result = client.complete(REQUEST)
    assert not result.ok
    assert result.failure is FailureKind.TRANSIENT_EXHAUSTED
    assert result.attempts == 10
    assert len(transport.calls) == 10
    assert slept == [2 ** n for n in range(9)]
    assert "503" in result.message


def test_malformed_envelope_is_retried():
    empty = SimpleNamespace(choices=[], usage=None)
    no_content = _response(None)
    client, transport, slept = _client([empty, no_content, _response("fine")])
    result = client.complete(REQUEST)
    assert result.ok and result.text == "fine"
    assert len(transport.calls) == 3
    assert slept == [1, 2]


def test_initial_delay_scales_backoff():
    client, _, slept = _client([_conn_error(), _conn_error(), _response("x")], initial_delay=0.5)
    assert client.complete(REQUEST).ok
    assert slept == [0.5, 1.0]


def test_missing_or_placeholder_key_fails_without_calling():
    for key in ("", "   ", PLACEHOLDER_KEY):
        transport = FakeTransport([_response("never")])
        client = CompletionClient(ClientConfig(api_key=key), transport=transport, sleep=lambda s: None)
        result = client.complete(REQUEST)
        assert not result.ok
        assert result.failure is FailureKind.CREDENTIAL_MISSING
        assert "DEEPSEEK_API_KEY" in result.message
        assert result.attempts == 0
        assert transport.calls == []


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-env")
    monkeypatch.setenv("DEEPSEEK_MODEL", "deepseek-reasoner")
    cfg = ClientConfig.from_env(temperature=0.2, max_tokens=None)
    assert cfg.api_key == "sk-env"
    assert cfg.model == "deepseek-reasoner"
    assert cfg.temperature == 0.2
    assert cfg.max_tokens == 1000
    assert cfg.has_credential
