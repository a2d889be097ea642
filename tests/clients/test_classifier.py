"""Tests for chat-platform detection."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from rewards.clients.classifier import PlatformClassifier, parse_platforms
from rewards.core.errors import ExternalFetchError


def _completion(content):
    completion = MagicMock()
    completion.choices = [MagicMock()]
    completion.choices[0].message.content = content
    return completion


class TestParsePlatforms:
    def test_think_block_stripped(self):
        assert parse_platforms('<think>hmm, slack?</think>\n["Slack", "Discord"]') == ["Slack", "Discord"]

    def test_case_insensitive_dedupe_keeps_first_spelling(self):
        assert parse_platforms('["Slack", "slack", "SLACK", "Zulip"]') == ["Slack", "Zulip"]

    def test_non_strings_dropped(self):
        assert parse_platforms('["Slack", 3, null, ""]') == ["Slack"]

    def test_garbage_is_empty(self):
        assert parse_platforms("I think it is Slack") == []
        assert parse_platforms('{"platforms": ["Slack"]}') == []


class TestPlatformClassifier:
    def test_detect(self, settings):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_completion('["Discord"]'))
        classifier = PlatformClassifier(settings, client=client)

        assert asyncio.run(classifier.detect("Description: a discord bot")) == ["Discord"]
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "qwen/qwen3-32b"
        assert kwargs["messages"][1]["content"] == "Description: a discord bot"

    def test_empty_text_skips_call(self, settings):
        client = MagicMock()
        client.chat.completions.create = AsyncMock()
        assert asyncio.run(PlatformClassifier(settings, client=client).detect("  ")) == []
        client.chat.completions.create.assert_not_called()

    def test_api_error_wrapped(self, settings):
        client = MagicMock()
        request = httpx.Request("POST", "https://ai.example/chat/completions")
        client.chat.completions.create = AsyncMock(side_effect=openai.APIConnectionError(request=request))
        with pytest.raises(ExternalFetchError):
            asyncio.run(PlatformClassifier(settings, client=client).detect("slack"))
