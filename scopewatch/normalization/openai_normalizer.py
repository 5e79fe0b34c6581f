"""OpenAI chat-completions normalizer.

Targets are split into fixed-size chunks in input order; each chunk is one
request to the chat-completions endpoint, and chunks run concurrently on a
bounded thread pool. The first failed chunk fails the whole call.

API Reference: https://platform.openai.com/docs/api-reference/chat/create
"""

import json
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Optional

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from scopewatch.core.circuit_breaker import get_circuit_breaker
from scopewatch.core.exceptions import (
    ConfigurationError,
    NormalizationAPIError,
    NormalizationError,
    NormalizationParseError,
    NormalizationTransportError,
)
from scopewatch.models import ProgramInfo, TargetItem
from scopewatch.monitoring.metrics import track_normalization_call
from scopewatch.normalization.base import Normalizer, NormalizerConfig, register_provider
from scopewatch.normalization.merge import NormalizedResult, chunk_items, merge_normalized
from scopewatch.normalization.prompts import SYSTEM_PROMPT
from scopewatch.scope import is_unified_category

logger = structlog.get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MAX_BATCH = 25
DEFAULT_MAX_CONCURRENCY = 10
TEMPERATURE = 0.1


# =============================================================================
# Reply Models
# =============================================================================


class _Message(BaseModel):
    content: Optional[str] = None


class _Choice(BaseModel):
    message: _Message


class _ChatResponse(BaseModel):
    choices: list[_Choice] = []


class _LLMOutputItem(BaseModel):
    id: int
    normalized: Optional[list[str]] = None
    in_scope: Optional[bool] = None
    category: Optional[str] = None
    notes: Optional[str] = None


class _LLMOutput(BaseModel):
    items: list[_LLMOutputItem] = []


# =============================================================================
# OpenAI Normalizer
# =============================================================================


@register_provider("openai")
class OpenAINormalizer(Normalizer):
    """Normalizer backed by the OpenAI chat-completions API.

    Example:
        config = NormalizerConfig(api_key="sk-...")
        with OpenAINormalizer(config) as normalizer:
            items = normalizer.normalize_targets(info, items)
    """

    def __init__(self, config: NormalizerConfig):
        if not config.api_key:
            raise ConfigurationError("openai api key is required", config_key="openai_api_key")

        self._api_key = config.api_key
        self._model = config.model or DEFAULT_MODEL
        self._endpoint = config.endpoint or DEFAULT_ENDPOINT
        self._max_batch = config.max_batch if config.max_batch > 0 else DEFAULT_MAX_BATCH
        self._max_concurrency = (
            config.max_concurrency if config.max_concurrency > 0 else DEFAULT_MAX_CONCURRENCY
        )
        self._log = config.log or logger
        self._breaker = get_circuit_breaker("ai_normalizer", failure_threshold=5, recovery_timeout=60)
        self._send = self._breaker(self._post_completion)

        self._owns_client = config.http_client is None
        if config.http_client is not None:
            self._client = config.http_client
        elif config.proxy:
            # Debugging proxies re-sign TLS traffic with their own CA.
            self._client = httpx.Client(
                timeout=httpx.Timeout(config.timeout), proxy=config.proxy, verify=False
            )
        else:
            self._client = httpx.Client(timeout=httpx.Timeout(config.timeout))

    def __enter__(self) -> "OpenAINormalizer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this normalizer created it."""
        if self._owns_client:
            self._client.close()

    def normalize_targets(
        self,
        info: ProgramInfo,
        items: list[TargetItem],
        cancel: Optional[threading.Event] = None,
    ) -> list[TargetItem]:
        if not items:
            return []

        chunks = chunk_items(items, self._max_batch)
        workers = min(self._max_concurrency, len(chunks))
        abort = threading.Event()
        self._log.debug(
            "ai_normalization_started",
            program_url=info.program_url,
            items=len(items),
            chunks=len(chunks),
            workers=workers,
        )

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ai-normalize") as pool:
            futures = [
                pool.submit(self._normalize_chunk, info, base_id, chunk, cancel, abort)
                for base_id, chunk in chunks
            ]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            failed = next((f for f in futures if f in done and f.exception() is not None), None)
            if failed is not None:
                abort.set()
                for future in pending:
                    future.cancel()
                raise failed.exception()

        out: list[TargetItem] = []
        for future in futures:
            out.extend(future.result())
        return out

    def _normalize_chunk(
        self,
        info: ProgramInfo,
        base_id: int,
        chunk: list[TargetItem],
        cancel: Optional[threading.Event],
        abort: threading.Event,
    ) -> list[TargetItem]:
        if abort.is_set() or (cancel is not None and cancel.is_set()):
            raise NormalizationError("ai normalization cancelled")

        normalized = self._query(info, base_id, chunk)
        missing = len(chunk) - sum(1 for i in range(len(chunk)) if base_id + i in normalized)
        if missing:
            self._log.debug(
                "ai_normalization_ids_missing",
                program_url=info.program_url,
                base_id=base_id,
                missing=missing,
            )
        return merge_normalized(chunk, base_id, normalized)

    def _query(self, info: ProgramInfo, base_id: int, chunk: list[TargetItem]) -> dict[int, NormalizedResult]:
        """Send one chunk to the API and parse the reply keyed by item id."""
        entries = []
        for idx, item in enumerate(chunk):
            entry = {"id": base_id + idx, "target": item.uri, "category": item.category}
            if item.description:
                entry["description"] = item.description
            entry["in_scope"] = item.in_scope
            entries.append(entry)

        payload = {
            "program_url": info.program_url,
            "platform": info.platform,
            "handle": info.handle,
            "items": entries,
        }
        body = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps(payload)},
            ],
            "temperature": TEMPERATURE,
            "response_format": {"type": "json_object"},
        }

        with track_normalization_call():
            response = self._send(body)
            return _parse_reply(response)

    def _post_completion(self, body: dict) -> httpx.Response:
        """POST one request; called through the breaker, which counts every raise."""
        try:
            response = self._client.post(
                self._endpoint,
                json=body,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.TransportError as e:
            raise NormalizationTransportError(f"ai request failed: {e}") from e

        if response.status_code >= 300:
            raise _api_error(response)
        return response


# =============================================================================
# Reply Parsing
# =============================================================================


def _api_error(response: httpx.Response) -> NormalizationAPIError:
    try:
        body = response.json()
    except ValueError:
        body = None

    message = ""
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = str(body["error"].get("message") or "").strip()
    if not message:
        message = f"ai normalization failed with HTTP {response.status_code}"
    return NormalizationAPIError(message, status_code=response.status_code)


def _parse_reply(response: httpx.Response) -> dict[int, NormalizedResult]:
    try:
        reply = _ChatResponse.model_validate_json(response.content)
    except ValidationError as e:
        raise NormalizationParseError(f"unexpected completion reply: {e}") from e

    content = ""
    if reply.choices and reply.choices[0].message.content:
        content = reply.choices[0].message.content.strip()
    if not content:
        raise NormalizationParseError("ai normalization returned an empty response")

    try:
        output = _LLMOutput.model_validate_json(content)
    except ValidationError as e:
        raise NormalizationParseError(f"unable to parse AI response: {e}") from e

    results: dict[int, NormalizedResult] = {}
    for item in output.items:
        category = (item.category or "").strip().lower()
        results[item.id] = NormalizedResult(
            targets=item.normalized or [],
            in_scope=item.in_scope,
            category=category if is_unified_category(category) else None,
            notes=item.notes or "",
        )
    return results
