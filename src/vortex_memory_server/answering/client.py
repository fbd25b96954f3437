"""Answering service clients.

The memory core only depends on the ``AnsweringService`` protocol: a single
``answer(prompt)`` call returning text or raising ``UpstreamError``. The
concrete client speaks the OpenAI-style chat-completions API (DeepSeek by
default) over httpx.
"""

import os
import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx

from ..memory.exceptions import UpstreamError, RateLimitedError

DEFAULT_BASE_URL = "https://api.deepseek.com"
DEFAULT_MODEL = "deepseek-chat"
DEFAULT_TIMEOUT = 30.0
DEFAULT_SYSTEM_PROMPT = (
    "Eres Vortex, un asistente personal. Responde en español de forma breve y clara."
)


class AnsweringService(Protocol):
    """Anything that can turn a prompt into an answer."""

    def answer(self, prompt: str) -> str:
        ...

    def close(self) -> None:
        ...


class ChatCompletionAnsweringService:
    """AnsweringService backed by a chat-completions endpoint.

    Example:
        service = ChatCompletionAnsweringService(api_key="...", model="deepseek-chat")
        text = service.answer("¿Qué tiempo hace en Madrid?")
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Bearer token for the API.
            base_url: API root; ``/chat/completions`` is appended.
            model: Model identifier sent with every request.
            timeout: Seconds before the outbound call is abandoned.
            system_prompt: Optional system message prepended to every call.
            client: Preconfigured httpx client, mainly for tests.
        """
        self._api_key = api_key
        self._model = model
        self._system_prompt = system_prompt
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    @classmethod
    def from_config(cls, answering_config: Dict[str, Any]) -> "ChatCompletionAnsweringService":
        """Build a client from the ``answering`` config section and the environment."""
        api_key_env = answering_config.get("api_key_env", "DEEPSEEK_API_KEY")
        api_key = os.environ.get(api_key_env)
        if not api_key:
            logging.warning(f"Answering service API key not set (env var {api_key_env})")
        return cls(
            api_key=api_key,
            base_url=answering_config.get("base_url", DEFAULT_BASE_URL),
            model=answering_config.get("model", DEFAULT_MODEL),
            timeout=answering_config.get("timeout", DEFAULT_TIMEOUT),
            system_prompt=answering_config.get("system_prompt", DEFAULT_SYSTEM_PROMPT),
        )

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    def _build_messages(self, prompt: str) -> List[Dict[str, str]]:
        messages = []
        if self._system_prompt:
            messages.append({"role": "system", "content": self._system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    def answer(self, prompt: str) -> str:
        """Send the prompt and return the completion text.

        Raises:
            RateLimitedError: If the API answered 429.
            UpstreamError: On transport, auth or any other API failure.
        """
        if not self._api_key:
            raise UpstreamError("Answering service API key is not configured")

        payload = {
            "model": self._model,
            "messages": self._build_messages(prompt),
            "stream": False,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            response = self._client.post("/chat/completions", json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                logging.warning("Answering service rate limited the request")
                raise RateLimitedError("Answering service rate limit reached", status_code=status) from e
            logging.error(f"Answering service returned HTTP {status}")
            raise UpstreamError(f"Answering service returned HTTP {status}", status_code=status) from e
        except httpx.RequestError as e:
            logging.error(f"Answering service request failed: {e}")
            raise UpstreamError(f"Answering service unreachable: {e}") from e

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError(f"Unexpected answering service response: {e}",
                                status_code=response.status_code) from e

        return (content or "").strip()

    def close(self) -> None:
        self._client.close()
