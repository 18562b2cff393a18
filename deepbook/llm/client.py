"""
openai-python ≥1.0 chat-completion client pointed at the DeepSeek endpoint.

Retries live here, not in the SDK: the SDK client is built with
max_retries=0 and every attempt goes through deepbook.utils.retry.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import openai
from openai import OpenAI

from deepbook.config import ClientConfig
from deepbook.errors import CredentialMissing, RetryExhausted, TransientNetworkError
from deepbook.models import FailureKind, GenerationRequest, GenerationResult
from deepbook.utils.retry import exponential, retry_call

logger = logging.getLogger(__name__)


class CompletionClient:
    """Send one request, retry transient failures, never raise."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._transport = transport
        self._sleep = sleep

    # ─── SDK handle ──────────────────────────────────────────────────────
    def _sdk(self) -> Any:
        if not self.config.has_credential:
            raise CredentialMissing("DEEPSEEK_API_KEY is not configured")
        if self._transport is None:
            self._transport = OpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                max_retries=0,
            )
        return self._transport

    def _call_once(self, sdk: Any, request: GenerationRequest) -> str:
        try:
            response = sdk.chat.completions.create(
                model=self.config.model,
                messages=request.as_payload(),
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except openai.APIError as exc:
            raise TransientNetworkError(_describe(exc)) from exc

        choices = getattr(response, "choices", None)
        if not choices or choices[0].message is None or choices[0].message.content is None:
            raise TransientNetworkError("malformed response envelope (no content)")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info("[LLM] %s  %s  p=%s  c=%s", self.config.model, request.purpose,
                        usage.prompt_tokens, usage.completion_tokens)
        return choices[0].message.content

    # ─── public API ──────────────────────────────────────────────────────
    def complete(self, request: GenerationRequest) -> GenerationResult:
        try:
            sdk = self._sdk()
        except CredentialMissing as exc:
            logger.error("%s; %s request not sent", exc, request.purpose)
            return GenerationResult.Failed(FailureKind.CREDENTIAL_MISSING, 0, str(exc))

        attempts = 0

        def attempt() -> str:
            nonlocal attempts
            attempts += 1
            return self._call_once(sdk, request)

        try:
            text = retry_call(
                attempt,
                attempts=self.config.max_attempts,
                retry_on=(TransientNetworkError,),
                backoff=exponential(self.config.initial_delay),
                sleep=self._sleep,
                label=f"{request.purpose} request",
            )
        except RetryExhausted as exc:
            logger.error("%s request failed after %d attempts: %s",
                         request.purpose, exc.attempts, exc.last_error)
            return GenerationResult.Failed(FailureKind.TRANSIENT_EXHAUSTED, exc.attempts,
                                           str(exc.last_error))
        return GenerationResult.Ok(text, attempts)


def _describe(exc: openai.APIError) -> str:
    status: Optional[int] = getattr(exc, "status_code", None)
    prefix = f"HTTP {status}: " if status else ""
    return f"{prefix}{exc.message or exc.__class__.__name__}"
