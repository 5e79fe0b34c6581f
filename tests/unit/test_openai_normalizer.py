"""Unit tests for the OpenAI chat-completions normalizer.

The completion API is replaced with httpx.MockTransport; the handler
answers each chunk from the ids it was sent.
"""

import json
import threading

import httpx
import pytest

from scopewatch.core.circuit_breaker import get_circuit_breaker
from scopewatch.core.exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    NormalizationAPIError,
    NormalizationError,
    NormalizationParseError,
    NormalizationTransportError,
)
from scopewatch.models import ProgramInfo, TargetItem
from scopewatch.normalization import NormalizerConfig, OpenAINormalizer, new_normalizer
from scopewatch.normalization.prompts import SYSTEM_PROMPT

INFO = ProgramInfo(program_url="https://hackerone.com/acme", platform="h1", handle="acme")


def completion(content) -> httpx.Response:
    if not isinstance(content, str):
        content = json.dumps(content)
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


class RecordingHandler:
    """MockTransport handler that records requests and replies per chunk."""

    def __init__(self, reply=None):
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()
        self._reply = reply or self.echo

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        return self._reply(request)

    @staticmethod
    def sent_items(request: httpx.Request) -> list[dict]:
        body = json.loads(request.content)
        return json.loads(body["messages"][1]["content"])["items"]

    @classmethod
    def echo(cls, request: httpx.Request) -> httpx.Response:
        items = cls.sent_items(request)
        return completion(
            {"items": [{"id": i["id"], "normalized": [f"n-{i['target']}"]} for i in items]}
        )


def make_normalizer(handler, **kwargs) -> OpenAINormalizer:
    config = NormalizerConfig(
        api_key="sk-test",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        **kwargs,
    )
    return OpenAINormalizer(config)


def make_items(count: int) -> list[TargetItem]:
    return [TargetItem(uri=f"t{i}.com", category="url") for i in range(count)]


class TestNormalizeTargets:
    """Tests for the happy path."""

    def test_empty_input_makes_no_request(self):
        handler = RecordingHandler()
        normalizer = make_normalizer(handler)

        assert normalizer.normalize_targets(INFO, []) == []
        assert handler.requests == []

    def test_chunks_and_preserves_order(self):
        handler = RecordingHandler()
        normalizer = make_normalizer(handler, max_batch=3, max_concurrency=2)

        out = normalizer.normalize_targets(INFO, make_items(7))

        assert len(handler.requests) == 3
        sent_ids = sorted(i["id"] for r in handler.requests for i in handler.sent_items(r))
        assert sent_ids == list(range(7))
        assert [item.uri for item in out] == [f"t{i}.com" for i in range(7)]
        assert [item.variants[0].value for item in out] == [f"n-t{i}.com" for i in range(7)]

    def test_first_chunk_answered_last_keeps_input_order(self):
        later_chunks_done = threading.Event()
        answered: list[int] = []
        lock = threading.Lock()

        def reply(request):
            first_id = RecordingHandler.sent_items(request)[0]["id"]
            if first_id == 0:
                later_chunks_done.wait(timeout=5)
            response = RecordingHandler.echo(request)
            with lock:
                answered.append(first_id)
                if len(answered) == 2:
                    later_chunks_done.set()
            return response

        handler = RecordingHandler(reply)
        normalizer = make_normalizer(handler, max_batch=2, max_concurrency=3)

        out = normalizer.normalize_targets(INFO, make_items(6))

        assert sorted(answered[:2]) == [2, 4]
        assert answered[-1] == 0
        assert [item.uri for item in out] == [f"t{i}.com" for i in range(6)]
        assert [[v.value for v in item.variants] for item in out] == [[f"n-t{i}.com"] for i in range(6)]

    def test_request_shape(self):
        handler = RecordingHandler()
        normalizer = make_normalizer(handler)

        normalizer.normalize_targets(
            INFO, [TargetItem(uri="*.acme.com", category="wildcard", description="main", in_scope=False)]
        )

        request = handler.requests[0]
        body = json.loads(request.content)
        assert request.url == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert body["model"] == "gpt-4.1-mini"
        assert body["temperature"] == 0.1
        assert body["response_format"] == {"type": "json_object"}
        assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}

        payload = json.loads(body["messages"][1]["content"])
        assert payload["program_url"] == INFO.program_url
        assert payload["platform"] == "h1"
        assert payload["handle"] == "acme"
        assert payload["items"] == [
            {"id": 0, "target": "*.acme.com", "category": "wildcard", "description": "main", "in_scope": False}
        ]

    def test_missing_id_means_no_variants(self):
        def reply(request):
            return completion({"items": [{"id": 1, "normalized": ["b.example.com"]}]})

        normalizer = make_normalizer(RecordingHandler(reply))
        items = [TargetItem(uri="a.com"), TargetItem(uri="b.com")]

        out = normalizer.normalize_targets(INFO, items)

        assert len(out) == 2
        assert out[0].variants == []
        assert [v.value for v in out[1].variants] == ["b.example.com"]

    def test_overrides_and_unknown_category(self):
        def reply(request):
            return completion(
                {
                    "items": [
                        {"id": 0, "normalized": ["acme.com"], "in_scope": False, "category": "Wildcard"},
                        {"id": 1, "normalized": ["docs.acme.com"], "category": "webpage"},
                    ]
                }
            )

        normalizer = make_normalizer(RecordingHandler(reply))
        items = [TargetItem(uri="*.acme.com", category="url"), TargetItem(uri="docs", category="url")]

        out = normalizer.normalize_targets(INFO, items)

        assert out[0].in_scope is False
        assert out[0].variants[0].category == "wildcard"
        assert out[0].variants[0].in_scope is False
        assert out[1].variants[0].category is None


class TestNormalizeTargetsFailures:
    """Tests for error translation and abort semantics."""

    def test_api_error_uses_body_message(self):
        def reply(request):
            return httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}})

        normalizer = make_normalizer(RecordingHandler(reply))

        with pytest.raises(NormalizationAPIError) as exc_info:
            normalizer.normalize_targets(INFO, make_items(1))

        assert exc_info.value.message == "Incorrect API key provided"
        assert exc_info.value.status_code == 401

    def test_api_error_without_body_is_generic(self):
        normalizer = make_normalizer(RecordingHandler(lambda r: httpx.Response(502, text="bad gateway")))

        with pytest.raises(NormalizationAPIError) as exc_info:
            normalizer.normalize_targets(INFO, make_items(1))

        assert exc_info.value.message == "ai normalization failed with HTTP 502"

    def test_invalid_json_content(self):
        normalizer = make_normalizer(RecordingHandler(lambda r: completion("not json at all")))

        with pytest.raises(NormalizationParseError):
            normalizer.normalize_targets(INFO, make_items(1))

    def test_empty_choices(self):
        normalizer = make_normalizer(RecordingHandler(lambda r: httpx.Response(200, json={"choices": []})))

        with pytest.raises(NormalizationParseError, match="empty response"):
            normalizer.normalize_targets(INFO, make_items(1))

    def test_schema_mismatch(self):
        reply = lambda r: completion({"items": [{"id": "first", "normalized": "x"}]})  # noqa: E731
        normalizer = make_normalizer(RecordingHandler(reply))

        with pytest.raises(NormalizationParseError):
            normalizer.normalize_targets(INFO, make_items(1))

    def test_transport_error(self):
        def reply(request):
            raise httpx.ConnectError("connection refused", request=request)

        normalizer = make_normalizer(RecordingHandler(reply))

        with pytest.raises(NormalizationTransportError):
            normalizer.normalize_targets(INFO, make_items(1))

    def test_one_failed_chunk_fails_the_call(self):
        def reply(request):
            items = RecordingHandler.sent_items(request)
            if items[0]["id"] == 2:
                return httpx.Response(500, json={"error": {"message": "overloaded"}})
            return RecordingHandler.echo(request)

        normalizer = make_normalizer(RecordingHandler(reply), max_batch=2, max_concurrency=1)

        with pytest.raises(NormalizationAPIError, match="overloaded"):
            normalizer.normalize_targets(INFO, make_items(6))

    def test_cancelled_before_request(self):
        handler = RecordingHandler()
        normalizer = make_normalizer(handler)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(NormalizationError):
            normalizer.normalize_targets(INFO, make_items(3), cancel)

        assert handler.requests == []

    def test_open_circuit_fails_fast(self):
        handler = RecordingHandler()
        normalizer = make_normalizer(handler)
        breaker = get_circuit_breaker("ai_normalizer")
        for _ in range(breaker.failure_threshold):
            breaker.record_failure()

        with pytest.raises(CircuitBreakerOpenError):
            normalizer.normalize_targets(INFO, make_items(1))

        assert handler.requests == []

    def test_repeated_api_failures_open_circuit(self):
        handler = RecordingHandler(lambda r: httpx.Response(503, text="unavailable"))
        normalizer = make_normalizer(handler)
        breaker = get_circuit_breaker("ai_normalizer")

        for _ in range(breaker.failure_threshold):
            with pytest.raises(NormalizationAPIError):
                normalizer.normalize_targets(INFO, make_items(1))

        assert breaker.is_open
        with pytest.raises(CircuitBreakerOpenError):
            normalizer.normalize_targets(INFO, make_items(1))
        assert len(handler.requests) == breaker.failure_threshold

    def test_unparseable_reply_does_not_trip_circuit(self):
        normalizer = make_normalizer(RecordingHandler(lambda r: completion("not json at all")))
        breaker = get_circuit_breaker("ai_normalizer")

        for _ in range(breaker.failure_threshold):
            with pytest.raises(NormalizationParseError):
                normalizer.normalize_targets(INFO, make_items(1))

        assert breaker.is_closed


class TestNewNormalizer:
    """Tests for the provider factory."""

    def test_openai_provider(self):
        normalizer = new_normalizer(NormalizerConfig(provider="OpenAI", api_key="sk-test"))

        assert isinstance(normalizer, OpenAINormalizer)
        normalizer.close()

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="unsupported AI provider"):
            new_normalizer(NormalizerConfig(provider="llama", api_key="x"))

    def test_missing_api_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            new_normalizer(NormalizerConfig(provider="openai"))

        assert exc_info.value.config_key == "openai_api_key"
