"""Tests for the idea similarity agent."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agents import registry
from agents.base import BaseAgent
from agents.registry import AgentRegistry
from agents.review.agent import IdeaSimilarityAgent, extract_json
from core.exceptions import RemoteJudgeError


class TestExtractJson:
    """Parsing model output."""

    def test_plain_object(self):
        assert extract_json('{"is_similar": false}') == {"is_similar": False}

    def test_fenced_object_with_prose(self):
        text = 'Here you go:\n```json\n{"recommendation": "APPROVE", "score": 0.1}\n```\nThanks'
        assert extract_json(text) == {"recommendation": "APPROVE", "score": 0.1}

    @pytest.mark.parametrize("text", ["", "no json here", "{not: valid}"])
    def test_unparsable(self, text):
        with pytest.raises(RemoteJudgeError):
            extract_json(text)


class TestIdeaSimilarityAgent:
    """Prompt construction and processing."""

    def test_registered(self):
        assert "idea_similarity" in registry.list_agents()

    def test_build_prompt(self):
        prompt = IdeaSimilarityAgent.build_prompt(
            {"title": "PayFast", "description": "Payments for freelancers"},
            [{"name": "Stripe", "one_liner": "Online payment processing", "tags": ["Fintech"]}],
        )
        assert "Title: PayFast" in prompt
        assert "Problem: Not specified" in prompt
        assert "- Company: Stripe" in prompt
        assert "Tags: Fintech" in prompt
        assert "Industry: Not specified" in prompt

    def test_build_prompt_empty_corpus(self):
        prompt = IdeaSimilarityAgent.build_prompt({"title": "X"}, [])
        assert "EXISTING COMPANIES:\nNone" in prompt

    @pytest.mark.asyncio
    async def test_process_parses_response(self):
        agent = IdeaSimilarityAgent()
        with patch.object(agent, "run", AsyncMock(return_value='{"is_similar": true}')) as run:
            result = await agent.process({"application": {"title": "X"}, "corpus": []})

        assert result == {"is_similar": True}
        assert "Title: X" in run.await_args.args[0]

    @pytest.mark.asyncio
    async def test_run_calls_gemini(self):
        agent = IdeaSimilarityAgent()
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text='{"a": 1}'))
        agent._client = client

        assert await agent.run("prompt") == '{"a": 1}'
        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == agent.model
        assert kwargs["config"].response_mime_type == "application/json"


class TestAgentRegistry:
    def test_unknown_agent(self):
        with pytest.raises(KeyError):
            AgentRegistry().get("missing")

    def test_instances_cached_until_reregistered(self):
        class Dummy(BaseAgent):
            async def process(self, input_data):
                return input_data

        local = AgentRegistry()
        local.register("dummy", lambda: Dummy(name="dummy", instructions=""))
        first = local.get("dummy")
        assert local.get("dummy") is first

        local.register("dummy", lambda: Dummy(name="dummy", instructions=""))
        assert local.get("dummy") is not first
