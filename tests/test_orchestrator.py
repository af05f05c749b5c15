"""Fallback chain behavior against a scripted upstream."""

import httpx
import pytest

from conftest import GEMINI, OPENAI, XAI, FakeUpstream, make_settings
from llm_fallback.adapters import OpenAIChatAdapter
from llm_fallback.errors import AllProvidersFailedError
from llm_fallback.models import ChatMessage, ChatRequest, ImageRequest
from llm_fallback.orchestrator import FallbackOrchestrator, ProviderDescriptor
from llm_fallback.registry import build_chat_providers, build_image_providers


CHAT_REQUEST = ChatRequest(messages=[ChatMessage(role="user", content="hi")])
IMAGE_REQUEST = ImageRequest(prompt="a cat", size="1024x1024")

XAI_OK = {"model": "grok-3-mini", "choices": [{"message": {"content": "from xai"}}]}
GEMINI_OK = {"candidates": [{"content": {"parts": [{"text": "from gemini"}]}}]}


async def _no_sleep(seconds):
    pass


async def _dispatch(providers, upstream, request, **kwargs):
    async with httpx.AsyncClient(transport=upstream.transport) as client:
        orchestrator = FallbackOrchestrator(providers, client, sleep=_no_sleep, **kwargs)
        return await orchestrator.dispatch(request, request_id="test")


@pytest.mark.asyncio
async def test_first_healthy_provider_wins(settings):
    upstream = FakeUpstream({XAI: XAI_OK, GEMINI: GEMINI_OK})

    result = await _dispatch(build_chat_providers(settings), upstream, CHAT_REQUEST)

    assert result.text == "from xai"
    assert result.provider_name == "xai"
    assert upstream.hosts() == [XAI]


@pytest.mark.asyncio
async def test_failing_provider_is_retried_then_skipped(settings):
    upstream = FakeUpstream({
        XAI: (500, {"error": "internal"}),
        GEMINI: GEMINI_OK,
    })

    result = await _dispatch(build_chat_providers(settings), upstream, CHAT_REQUEST)

    assert result.provider_name == "gemini"
    assert result.text == "from gemini"
    assert upstream.hosts() == [XAI, XAI, GEMINI]


@pytest.mark.asyncio
async def test_later_providers_untouched_after_success(settings):
    upstream = FakeUpstream({
        XAI: (503, "unavailable"),
        OPENAI: {"data": [{"b64_json": "QUJD"}]},
        GEMINI: GEMINI_OK,
    })

    result = await _dispatch(build_image_providers(settings), upstream, IMAGE_REQUEST)

    assert result.provider_name == "openai"
    assert result.image.base64 == "QUJD"
    assert GEMINI not in upstream.hosts()


@pytest.mark.asyncio
async def test_size_never_sent_to_grok(settings):
    upstream = FakeUpstream({XAI: {"data": [{"url": "https://imgen.x.ai/1.jpg"}]}})

    result = await _dispatch(build_image_providers(settings), upstream, IMAGE_REQUEST)

    assert result.image.url == "https://imgen.x.ai/1.jpg"
    assert "size" not in upstream.bodies(XAI)[0]


@pytest.mark.asyncio
async def test_all_failed_reports_every_provider(settings):
    upstream = FakeUpstream({
        XAI: [(500, {"error": "first"}), (500, {"error": {"message": "grok down"}})],
        OPENAI: (400, {"error": {"message": "Your request was rejected by the safety system"}}),
        GEMINI: {"candidates": [{"content": {"parts": [{"text": "I cannot draw that."}]}}]},
    })

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await _dispatch(
            build_image_providers(settings), upstream, IMAGE_REQUEST,
            failure_message="All image providers failed",
        )

    failure = exc_info.value.failure
    assert failure.message == "All image providers failed"
    assert list(failure.per_provider) == ["grok", "openai", "gemini"]
    assert failure.per_provider["grok"] == "HTTP 500: grok down"
    assert failure.per_provider["openai"] == "HTTP 400: Your request was rejected by the safety system"
    assert "I cannot draw that." in failure.per_provider["gemini"]
    assert len(exc_info.value.outcomes) == 6


@pytest.mark.asyncio
async def test_unconfigured_provider_is_skipped_without_a_call():
    settings = make_settings(gemini_api_key="gemini-test")
    upstream = FakeUpstream({XAI: XAI_OK, GEMINI: GEMINI_OK})

    result = await _dispatch(build_chat_providers(settings), upstream, CHAT_REQUEST)

    assert result.provider_name == "gemini"
    assert upstream.hosts() == [GEMINI]


@pytest.mark.asyncio
async def test_all_unconfigured():
    upstream = FakeUpstream({})

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await _dispatch(build_chat_providers(make_settings()), upstream, CHAT_REQUEST)

    assert exc_info.value.failure.per_provider == {
        "xai": "credential not set",
        "gemini": "credential not set",
    }
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_timeout_counts_as_failed_attempt(settings):
    upstream = FakeUpstream({
        XAI: httpx.ReadTimeout("timed out"),
        GEMINI: GEMINI_OK,
    })

    result = await _dispatch(build_chat_providers(settings), upstream, CHAT_REQUEST)

    assert result.provider_name == "gemini"
    assert upstream.hosts() == [XAI, XAI, GEMINI]


@pytest.mark.asyncio
async def test_connection_error_detail(settings):
    settings = make_settings(xai_api_key="k", chat_providers="xai")
    upstream = FakeUpstream({XAI: httpx.ConnectError("connection refused")})

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await _dispatch(build_chat_providers(settings), upstream, CHAT_REQUEST)

    assert "ConnectError" in exc_info.value.failure.per_provider["xai"]


@pytest.mark.asyncio
async def test_unparseable_chat_body_is_stringified(settings):
    upstream = FakeUpstream({XAI: (200, "not json at all")})

    result = await _dispatch(build_chat_providers(settings), upstream, CHAT_REQUEST)

    assert result.text == "not json at all"


def test_provider_names_must_be_unique():
    descriptors = [
        ProviderDescriptor(adapter=OpenAIChatAdapter("xai"), api_key="a"),
        ProviderDescriptor(adapter=OpenAIChatAdapter("xai"), api_key="b"),
    ]
    with pytest.raises(ValueError):
        FallbackOrchestrator(descriptors, client=None)
