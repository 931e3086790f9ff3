from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional

import json_repair
import requests
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"
RETRYABLE_STATUS = {429, 500, 502, 503, 504}

CODE_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
ERROR_SENTINEL: Dict[str, str] = {"status": "error"}


class LLMError(RuntimeError):
    """Raised when the chat completions API fails or returns an unusable payload."""


class TransientLLMError(LLMError):
    """A dropped connection, timeout or 429/5xx reply; retried before giving up."""


class OpenAIChatClient:
    """
    Minimal chat-completions client.

    Configuration is pulled from environment variables unless provided directly:

    - ``OPENAI_API_KEY`` – bearer token
    - ``OPENAI_BASE_URL`` – defaults to ``https://api.openai.com/v1``
    - ``OPENAI_MODEL`` – model id (``gpt-4o-mini`` by default)

    Connection errors, timeouts and 429/5xx replies are retried with exponential backoff.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = 30,
        temperature: float = 0.2,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
    ):
        token = api_key or os.environ.get("OPENAI_API_KEY")
        if not token:
            raise ValueError("OpenAI API key missing. Set OPENAI_API_KEY or pass api_key explicitly.")

        self.api_key = token
        self.model = model or os.environ.get("OPENAI_MODEL", DEFAULT_MODEL)
        self.base_url = base_url or os.environ.get("OPENAI_BASE_URL", DEFAULT_BASE_URL)
        self.timeout = timeout
        self.temperature = temperature
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def chat(
        self,
        messages: Iterable[Mapping[str, str]],
        *,
        system_prompt: str | None = None,
        response_format: Optional[MutableMapping[str, str]] = None,
    ) -> str:
        """
        Call the chat completions endpoint and return the assistant text response.

        ``system_prompt`` is prepended automatically if provided.
        """

        payload: dict[str, object] = {
            "model": self.model,
            "messages": list(messages),
            "temperature": self.temperature,
        }
        if system_prompt:
            payload["messages"] = [{"role": "system", "content": system_prompt}, *payload["messages"]]
        if response_format:
            payload["response_format"] = response_format

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        response = self._post_with_retry(payload, headers)

        try:
            body = response.json()
        except ValueError as exc:
            raise LLMError(f"Invalid JSON from chat completions API: {response.text[:200]}") from exc

        choices: List[Mapping[str, object]] = body.get("choices", [])
        if not choices:
            raise LLMError(f"Chat completions response missing choices: {body}")
        message = choices[0].get("message", {})
        content = message.get("content") if isinstance(message, Mapping) else None
        if not isinstance(content, str):
            raise LLMError(f"Chat completions response missing assistant text: {message}")
        return content

    def _post_with_retry(self, payload: Mapping[str, object], headers: Mapping[str, str]) -> requests.Response:
        send = retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=30),
            retry=retry_if_exception_type(TransientLLMError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )(self._send)
        try:
            return send(payload, headers)
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            raise LLMError(f"Chat completions API unavailable after {self.max_retries} attempts: {cause}") from exc

    def _send(self, payload: Mapping[str, object], headers: Mapping[str, str]) -> requests.Response:
        try:
            response = requests.post(self.endpoint, headers=headers, json=payload, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransientLLMError(f"Chat completions request failed: {exc}") from exc
        if response.status_code in RETRYABLE_STATUS:
            raise TransientLLMError(f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise LLMError(f"Chat completions API error {response.status_code}: {response.text}")
        return response


def _strip_fences(text: str) -> str:
    return CODE_FENCE_RE.sub("", text.strip()).strip()


def safe_json_parse(reply: Optional[str]) -> Any:
    """
    Best-effort parse of a model reply that should be JSON.

    Strips markdown fences and any prose before the first bracket, then lets
    ``json_repair`` fix trailing commas, single quotes and truncated output.
    Returns ``ERROR_SENTINEL`` when no JSON object or array can be recovered.
    """

    if not reply or not reply.strip():
        return dict(ERROR_SENTINEL)

    text = _strip_fences(reply)
    starts = [pos for pos in (text.find("["), text.find("{")) if pos >= 0]
    if starts:
        parsed = json_repair.loads(text[min(starts) :])
        if isinstance(parsed, (dict, list)):
            return parsed

    logger.warning("Could not parse model reply as JSON: %s", reply[:200])
    return dict(ERROR_SENTINEL)


def is_error_sentinel(value: Any) -> bool:
    return isinstance(value, Mapping) and value.get("status") == "error" and len(value) == 1
