"""
OpenAI-compatible chat completions client.
Wraps POST {base_url}/chat/completions with retry logic.
"""
import logging
import time
from typing import Optional
import httpx

from config import Settings, settings as default_settings
from core.errors import LLMError

logger = logging.getLogger(__name__)

# Client errors other than rate limiting will not succeed on retry
_RETRYABLE_STATUS = {408, 409, 429}


class OpenAIClient:
    """Thin client for a chat-completion endpoint."""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.BaseTransport] = None):
        cfg = settings or default_settings
        if not cfg.OPENAI_API_KEY:
            raise LLMError("OpenAI API Key not found")
        self.model = cfg.OPENAI_MODEL
        self.max_tokens = cfg.LLM_MAX_TOKENS
        self.temperature = cfg.LLM_TEMPERATURE
        self.top_p = cfg.LLM_TOP_P
        self.max_retries = cfg.LLM_MAX_RETRIES
        self.backoff_base = 2
        self._http = httpx.Client(
            base_url=cfg.OPENAI_BASE_URL.rstrip("/"),
            headers={"Authorization": f"Bearer {cfg.OPENAI_API_KEY}"},
            timeout=cfg.OPENAI_TIMEOUT_SECONDS,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "OpenAIClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def chat(self, messages: list[dict]) -> str:
        """
        Send a list of {role, content} messages and return the assistant's reply.
        Retries up to max_retries times on transport errors, 5xx and rate limiting.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
        }
        last_err: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                logger.debug("Chat completion attempt %d (%d messages)", attempt, len(messages))
                resp = self._http.post("/chat/completions", json=payload)
                resp.raise_for_status()
                text = resp.json()["choices"][0]["message"]["content"] or ""
                logger.debug("Chat completion length: %d chars", len(text))
                return text.strip()
            except httpx.HTTPStatusError as e:
                last_err = e
                status = e.response.status_code
                if status < 500 and status not in _RETRYABLE_STATUS:
                    raise LLMError(f"Chat completion rejected ({status}): {e.response.text[:200]}") from e
                logger.warning("Chat completion attempt %d/%d failed: %s", attempt, self.max_retries, e)
            except httpx.HTTPError as e:
                last_err = e
                logger.warning("Chat completion attempt %d/%d failed: %s", attempt, self.max_retries, e)
            except (KeyError, IndexError, TypeError, ValueError) as e:
                raise LLMError(f"Malformed chat completion response: {e}") from e
            if attempt < self.max_retries:
                time.sleep(self.backoff_base ** attempt)  # exponential back-off: 2s, 4s
        raise LLMError(f"Chat completion failed after {self.max_retries} attempts: {last_err}")
