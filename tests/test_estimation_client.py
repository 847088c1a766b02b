from __future__ import annotations

import json

import pytest
import requests
from pydantic import BaseModel

from macrocoach.errors import EstimationError
from macrocoach.services import estimation_client
from macrocoach.services.estimation_client import HttpEstimationOracle


class Answer(BaseModel):
    value: int


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


@pytest.fixture
def oracle():
    return HttpEstimationOracle(api_url="https://llm.example/v1/chat/completions", api_key="k", timeout_s=3)


def test_unconfigured_oracle_fails_fast(monkeypatch):
    monkeypatch.setattr(estimation_client.settings, "ESTIMATION_API_URL", None)
    monkeypatch.setattr(estimation_client.settings, "ESTIMATION_API_KEY", None)
    with pytest.raises(EstimationError):
        HttpEstimationOracle().estimate("p", Answer, system="s")


def test_valid_answer_is_parsed_and_timeout_applied(oracle, monkeypatch):
    seen = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        seen.update(url=url, payload=json, timeout=timeout, headers=headers)
        return FakeResponse(_completion('{"value": 7}'))

    monkeypatch.setattr(estimation_client.requests, "post", fake_post)
    assert oracle.estimate("how many?", Answer, system="be terse", max_tokens=50) == Answer(value=7)
    assert seen["timeout"] == 3
    assert seen["headers"]["Authorization"] == "Bearer k"
    assert seen["payload"]["max_tokens"] == 50
    assert seen["payload"]["messages"][0] == {"role": "system", "content": "be terse"}


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(_completion("not json")),
        FakeResponse(_completion(json.dumps([1, 2]))),
        FakeResponse(_completion('{"value": "many"}')),
        FakeResponse({"unexpected": True}),
        FakeResponse({}, status=503),
    ],
)
def test_bad_answers_become_estimation_errors(oracle, monkeypatch, response):
    monkeypatch.setattr(estimation_client.requests, "post", lambda *a, **kw: response)
    with pytest.raises(EstimationError):
        oracle.estimate("p", Answer, system="s")


def test_network_errors_become_estimation_errors(oracle, monkeypatch):
    def timeout(*a, **kw):
        raise requests.Timeout("slow")

    monkeypatch.setattr(estimation_client.requests, "post", timeout)
    with pytest.raises(EstimationError):
        oracle.estimate("p", Answer, system="s")
