"""Shared fixtures: settings isolated from the environment and a fake upstream."""

import json

import httpx
import pytest

from llm_fallback.config import Settings


def make_settings(**overrides) -> Settings:
    values = {
        "xai_api_key": None,
        "gemini_api_key": None,
        "openai_api_key": None,
        "retry_base_delay_ms": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeUpstream:
    """
    Routes requests by host to scripted responses and records what was sent.

    A route value is either a list consumed one item per call (the last item
    repeats) or a single item. Items are dicts served as 200 JSON,
    `(status, body)` tuples, or exceptions to raise.
    """

    def __init__(self, routes: dict):
        self.routes = {host: list(v) if isinstance(v, list) else [v] for host, v in routes.items()}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(request.url.host)
        if not queue:
            return httpx.Response(404, json={"error": f"no route for {request.url.host}"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            if isinstance(item, httpx.RequestError):
                item.request = request
            raise item
        if isinstance(item, tuple):
            status, body = item
            if isinstance(body, str):
                return httpx.Response(status, text=body)
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=item)

    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]

    def bodies(self, host: str) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.host == host]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


XAI = "api.x.ai"
OPENAI = "api.openai.com"
GEMINI = "generativelanguage.googleapis.com"


@pytest.fixture
def settings() -> Settings:
    return make_settings(
        xai_api_key="xai-test",
        gemini_api_key="gemini-test",
        openai_api_key="openai-test",
    )
