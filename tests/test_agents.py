"""Tests for the dossier completion agent."""

import json
from collections.abc import Callable
from unittest.mock import AsyncMock

import httpx
import pytest
from openai import AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.models.test import TestModel
from pydantic_ai.providers.openai import OpenAIProvider

from dossier.agents import (
    JSON_MODE_SETTINGS,
    SYSTEM_PROMPT,
    build_user_prompt,
    clear_agent_cache,
    create_completion_model,
    create_dossier_agent,
    get_dossier_agent,
    request_dossier,
)
from dossier.config import DossierConfig
from dossier.exceptions import CompletionError

CONFIG = DossierConfig(search_api_key="valyu-test-key", completion_api_key="gateway-test-key")


@pytest.fixture(autouse=True)
def _clear_caches() -> None:
    clear_agent_cache()
    yield
    clear_agent_cache()


class TestSystemPrompt:
    """The system instruction carries the tiers, categories, icons and schema."""

    @pytest.mark.parametrize(
        "fragment",
        [
            "Economy: <$200k",
            "Standard: $200k-$400k",
            "Premium: $400k-$700k",
            "Luxury: >$700k",
            "'risk_score' (0-100)",
            '"Financial" | "Technical" | "Neighborhood" | "Permits"',
            '"DollarSign" | "AlertTriangle" | "MapPin" | "FileCheck" | "Clock"',
            '"talk_track"',
            '"raw_sources": []',
        ],
    )
    def test__system_prompt__contains(self, fragment: str) -> None:
        assert fragment in SYSTEM_PROMPT


class TestBuildUserPrompt:
    """Tests for build_user_prompt."""

    def test__build_user_prompt__embeds_address_and_context(self) -> None:
        prompt = build_user_prompt("1 High St", "[1] Source: A\nContent: B")
        assert prompt == (
            "Analyze this property: 1 High St\n\nSearch Data:\n[1] Source: A\nContent: B\n\nReturn ONLY the JSON dossier."
        )

    def test__build_user_prompt__empty_context_still_asks_for_json(self) -> None:
        prompt = build_user_prompt("1 High St", "")
        assert "Search Data:\n\n\nReturn ONLY the JSON dossier." in prompt


class TestAgentFactories:
    """Tests for agent and model factories."""

    def test__create_dossier_agent__returns_named_agent(self) -> None:
        agent = create_dossier_agent(TestModel())
        assert isinstance(agent, Agent)
        assert agent.name == "dossier_agent"

    def test__create_dossier_agent__requests_json_mode(self) -> None:
        agent = create_dossier_agent(TestModel())
        assert agent.model_settings == JSON_MODE_SETTINGS
        assert JSON_MODE_SETTINGS["extra_body"] == {"response_format": {"type": "json_object"}}

    def test__create_dossier_agent__returns_fresh_instances(self) -> None:
        model = TestModel()
        assert create_dossier_agent(model) is not create_dossier_agent(model)

    def test__create_completion_model__uses_configured_model(self) -> None:
        model = create_completion_model(CONFIG)
        assert isinstance(model, OpenAIChatModel)
        assert model.model_name == "google/gemini-2.5-flash"

    def test__get_dossier_agent__caches_per_config(self) -> None:
        assert get_dossier_agent(CONFIG) is get_dossier_agent(CONFIG)

    def test__get_dossier_agent__new_config__new_agent(self) -> None:
        other = DossierConfig(search_api_key="a", completion_api_key="b", model="openai/gpt-4o-mini")
        assert get_dossier_agent(CONFIG) is not get_dossier_agent(other)


class TestRequestDossier:
    """Tests for request_dossier."""

    @pytest.mark.asyncio
    async def test__request_dossier__returns_message_text(self) -> None:
        agent = create_dossier_agent(TestModel(custom_output_text='{"address": "1 High St"}'))
        assert await request_dossier(agent, "1 High St", "") == '{"address": "1 High St"}'

    @pytest.mark.asyncio
    async def test__request_dossier__sends_system_and_user_messages(self) -> None:
        seen: dict[str, object] = {}

        def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
            request = messages[-1]
            assert isinstance(request, ModelRequest)
            seen["instructions"] = request.instructions
            seen["user"] = [part.content for part in request.parts if isinstance(part, UserPromptPart)]
            return ModelResponse(parts=[TextPart(content="{}")])

        agent = create_dossier_agent(FunctionModel(respond))
        await request_dossier(agent, "1 High St", "ctx")

        assert "construction intelligence parser" in str(seen["instructions"])
        assert seen["user"] == [build_user_prompt("1 High St", "ctx")]

    @pytest.mark.asyncio
    async def test__request_dossier__http_error__raises_completion_error(self) -> None:
        agent = create_dossier_agent(TestModel())
        agent.run = AsyncMock(
            side_effect=ModelHTTPError(status_code=429, model_name="google/gemini-2.5-flash", body="rate limited")
        )

        with pytest.raises(CompletionError) as exc_info:
            await request_dossier(agent, "1 High St", "")

        assert exc_info.value.status_code == 429
        assert exc_info.value.body == "rate limited"
        assert str(exc_info.value) == "AI Gateway error: 429"

    @pytest.mark.asyncio
    async def test__request_dossier__dict_body__kept_as_text(self) -> None:
        agent = create_dossier_agent(TestModel())
        agent.run = AsyncMock(
            side_effect=ModelHTTPError(status_code=500, model_name="m", body={"error": {"message": "down"}})
        )

        with pytest.raises(CompletionError) as exc_info:
            await request_dossier(agent, "1 High St", "")

        assert "down" in exc_info.value.body

    @pytest.mark.asyncio
    async def test__request_dossier__other_errors__propagate(self) -> None:
        agent = create_dossier_agent(TestModel())
        agent.run = AsyncMock(side_effect=RuntimeError("socket closed"))

        with pytest.raises(RuntimeError, match="socket closed"):
            await request_dossier(agent, "1 High St", "")


def _gateway_model(handler: Callable[[httpx.Request], httpx.Response]) -> OpenAIChatModel:
    client = AsyncOpenAI(
        base_url="https://gateway.test/v1",
        api_key="gateway-test-key",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return OpenAIChatModel("google/gemini-2.5-flash", provider=OpenAIProvider(openai_client=client))


def _chat_completion(content: str) -> dict[str, object]:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1760000000,
        "model": "google/gemini-2.5-flash",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"},
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


class TestGatewayRequest:
    """End-to-end requests through the OpenAI-compatible chat model."""

    @pytest.mark.asyncio
    async def test__gateway_agent__sends_json_mode_chat_completion(self) -> None:
        captured: list[dict[str, object]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(json.loads(request.content))
            return httpx.Response(200, json=_chat_completion('{"address": "1 High St"}'))

        agent = create_dossier_agent(_gateway_model(handler))
        output = await request_dossier(agent, "1 High St", "ctx")

        assert output == '{"address": "1 High St"}'
        body = captured[0]
        assert body["model"] == "google/gemini-2.5-flash"
        assert body["response_format"] == {"type": "json_object"}
        assert [message["role"] for message in body["messages"]] == ["system", "user"]
        assert body["messages"][1]["content"] == build_user_prompt("1 High St", "ctx")

    @pytest.mark.asyncio
    async def test__gateway_agent__error_status__raises_completion_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(402, json={"error": {"message": "payment required"}})

        agent = create_dossier_agent(_gateway_model(handler))

        with pytest.raises(CompletionError) as exc_info:
            await request_dossier(agent, "1 High St", "ctx")

        assert exc_info.value.status_code == 402
        assert "payment required" in exc_info.value.body
