# file: tests/test_llm.py
from unittest.mock import AsyncMock, Mock

import pytest

from app.config import Settings
from app.errors import ConfigError
from app.tools.llm import GeminiClient, LLMNotReady


def _client(text="[]", finish="STOP"):
    client = Mock()
    reason = Mock()
    reason.name = finish
    response = Mock(text=text, candidates=[Mock(finish_reason=reason)])
    client.aio.models.generate_content = AsyncMock(return_value=response)
    return client


def test_missing_api_key():
    with pytest.raises(ConfigError):
        GeminiClient(Settings(api_key=None))


@pytest.mark.asyncio
async def test_grounded_call_attaches_search_tool(settings):
    client = _client('[{"companyName": "Acme"}]')
    llm = GeminiClient(settings, client=client)
    text = await llm.generate("find leads", system="be precise")
    assert text == '[{"companyName": "Acme"}]'

    kwargs = client.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == settings.model
    assert kwargs["contents"] == "find leads"
    config = kwargs["config"]
    assert config.tools == [llm.search_tool]
    assert config.system_instruction == "be precise"
    assert config.thinking_config is None


@pytest.mark.asyncio
async def test_ungrounded_call_with_overrides(settings):
    client = _client("{}")
    llm = GeminiClient(settings, client=client)
    await llm.generate("explain", grounded=False, temperature=0.7, thinking_budget=0)
    config = client.aio.models.generate_content.call_args.kwargs["config"]
    assert not config.tools
    assert config.temperature == 0.7
    assert config.thinking_config.thinking_budget == 0


@pytest.mark.asyncio
async def test_grounding_disabled_in_settings(settings):
    settings.search_grounding = False
    client = _client("{}")
    await GeminiClient(settings, client=client).generate("x")
    assert not client.aio.models.generate_content.call_args.kwargs["config"].tools


@pytest.mark.asyncio
async def test_empty_response_raises(settings):
    llm = GeminiClient(settings, client=_client(""))
    with pytest.raises(LLMNotReady):
        await llm.generate("x")


@pytest.mark.asyncio
async def test_truncated_response_is_returned(settings):
    llm = GeminiClient(settings, client=_client('[{"companyName": "Ac', finish="MAX_TOKENS"))
    assert await llm.generate("x") == '[{"companyName": "Ac'


@pytest.mark.asyncio
async def test_request_failure_wrapped(settings):
    client = Mock()
    client.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("429 quota"))
    llm = GeminiClient(settings, client=client)
    with pytest.raises(LLMNotReady) as exc:
        await llm.generate("x")
    assert "429 quota" in str(exc.value)
    assert not await llm.check_ready()
