# podscription/providers/openai_chat.py
# -*- coding: utf-8 -*-
"""
Podscription API — Model backend (OpenAI-compatible chat completions)
---------------------------------------------------------------------
This module is the ONLY place that knows how to talk to the model backend.

Responsibilities:
- Build the HTTP request (URL, headers, JSON payload).
- Send one (system, user) prompt pair with the caller's sampling settings.
- Return the first choice's text, or raise BackendError.

Used by core/intent.py (classification) and core/generate.py (diagnosis).
Nothing here retries: a failed call is reported and the pipeline decides.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import requests

from podscription.core.config import Settings

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when a model backend call fails or returns no completion."""


class CompletionBackend(Protocol):
    """The one capability the pipeline needs from a language model."""

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        timeout: Optional[float] = None,
    ) -> str: ...


def _build_chat_payload(
    model_name: str,
    system_prompt: str,
    user_prompt: str,
    temperature: float,
    max_tokens: int,
) -> Dict[str, Any]:
    """
    Build the JSON payload for /chat/completions.

    Always exactly two messages: the system instructions and the user text.
    """
    return {
        "model": model_name,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    }


class OpenAIChatBackend:
    """
    requests-based client for an OpenAI-compatible chat completions API.

    Parameters
    ----------
    api_key:
        Bearer token. Missing key is reported per call, not at construction,
        so the server can still start and serve stored sessions.
    base_url:
        Full URL of the chat completions endpoint.
    model:
        Model identifier sent with every request.
    default_timeout_s:
        HTTP timeout used when the caller passes none.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        model: str,
        default_timeout_s: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.default_timeout_s = default_timeout_s
        self._http = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIChatBackend":
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            default_timeout_s=settings.request_timeout_s,
        )

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Send one prompt pair and return the first choice's content.

        Raises
        ------
        BackendError
            Missing API key, exhausted time budget, HTTP/transport failure,
            non-JSON body, malformed payload, or zero choices.
        """
        if not self.api_key:
            raise BackendError("Model backend API key is missing.")

        if timeout is not None and timeout <= 0:
            raise BackendError("No time left in the request budget.")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = _build_chat_payload(
            self.model, system_prompt, user_prompt, temperature, max_tokens
        )

        try:
            resp = self._http.post(
                self.base_url,
                headers=headers,
                json=payload,
                timeout=timeout if timeout is not None else self.default_timeout_s,
            )
        except requests.RequestException as exc:
            raise BackendError(f"Backend HTTP error: {exc}") from exc

        if resp.status_code != 200:
            text_preview = resp.text[:200].replace("\n", " ")
            raise BackendError(f"Backend HTTP {resp.status_code}: {text_preview}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise BackendError("Backend returned non-JSON response.") from exc

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise BackendError("Backend returned no choices.")

        try:
            content = choices[0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise BackendError(
                "Backend response JSON missing choices[0].message.content"
            ) from exc

        # A null content (e.g. refusal) is treated as an empty reply.
        return content if isinstance(content, str) else ""
