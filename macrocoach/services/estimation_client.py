# macrocoach/services/estimation_client.py
"""
Client for the estimation oracle: an OpenAI-compatible chat-completions
endpoint that is asked to answer in strict JSON.

Every failure mode (not configured, network error, HTTP error, non-JSON body,
JSON that does not match the caller's schema) surfaces as EstimationError so
that callers have exactly one thing to catch before falling back.
"""

from __future__ import annotations

import json
from typing import Any, Protocol, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from macrocoach.config import settings
from macrocoach.errors import EstimationError

T = TypeVar("T", bound=BaseModel)


class EstimationOracle(Protocol):
    def estimate(self, prompt: str, schema: type[T], *, system: str, max_tokens: int = 500) -> T:
        ...


class HttpEstimationOracle:
    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout_s: float | None = None,
        temperature: float | None = None,
    ):
        self.api_url = api_url or settings.ESTIMATION_API_URL
        self.api_key = api_key or settings.ESTIMATION_API_KEY
        self.model = model or settings.ESTIMATION_MODEL
        self.timeout_s = timeout_s if timeout_s is not None else settings.ESTIMATION_TIMEOUT_S
        self.temperature = temperature if temperature is not None else settings.ESTIMATION_TEMPERATURE

    def configured(self) -> bool:
        """Return True if the endpoint and key are both present."""
        return bool(self.api_url and self.api_key)

    def _complete_json(self, system: str, prompt: str, max_tokens: int) -> dict[str, Any]:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        resp = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout_s)
        resp.raise_for_status()
        content = resp.json()["choices"][0]["message"]["content"] or ""
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError("oracle answered with a non-object JSON value")
        return data

    def estimate(self, prompt: str, schema: type[T], *, system: str, max_tokens: int = 500) -> T:
        if not self.configured():
            raise EstimationError("estimation oracle is not configured")
        try:
            raw = self._complete_json(system, prompt, max_tokens)
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
            raise EstimationError(f"estimation oracle call failed: {e}") from e
        try:
            return schema.model_validate(raw)
        except ValidationError as e:
            raise EstimationError(f"estimation oracle answered outside the {schema.__name__} contract") from e


def get_oracle() -> EstimationOracle:
    """FastAPI dependency; overridden in tests with a scripted oracle."""
    return HttpEstimationOracle()
