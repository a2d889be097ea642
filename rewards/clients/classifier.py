"""
Chat-platform detection over free-text submission fields.

Calls an OpenAI-compatible chat completion endpoint and expects a bare JSON
array of platform names back. Reasoning models may wrap their answer in
<think>...</think>, which is stripped before parsing.
"""
import json
import logging
import re

import openai
from openai import AsyncOpenAI

from rewards.core.config import Settings
from rewards.core.errors import ExternalFetchError

logger = logging.getLogger("llm.platform_classifier")

SYSTEM_PROMPT = """You are an expert at analyzing text to identify chat platforms mentioned.

Your task is to identify ALL chat platforms mentioned across the provided text. Chat platforms include applications like Slack, Discord, Zulip, Microsoft Teams, Telegram, WhatsApp, IRC, Matrix, Mattermost, etc.

IMPORTANT RULES:
1. ONLY return chat/messaging platforms, not other types of platforms
2. Return the results as a JSON array of strings
3. Use standard platform names (e.g., "Slack", "Discord", "Zulip")
4. If no chat platforms are found, return an empty array []
5. Do not include any explanation or thinking process in your response

Examples:
- If text mentions "slack channels" and "discord server" → ["Slack", "Discord"]
- If text mentions "github repository" and "zoom meeting" → []
- If text mentions "Teams chat" and "telegram group" → ["Microsoft Teams", "Telegram"]

Analyze the following text and return ONLY the JSON array:"""

_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)


def parse_platforms(content: str) -> list[str]:
    """Parse the model answer into distinct platform names (first spelling wins)."""
    cleaned = _THINK_RE.sub("", content or "").strip()
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        logger.warning("platform_response_not_json", extra={"error": cleaned[:200]})
        return []
    if not isinstance(parsed, list):
        return []
    seen: set[str] = set()
    platforms = []
    for name in parsed:
        if not isinstance(name, str) or not name.strip():
            continue
        key = name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        platforms.append(name.strip())
    return platforms


class PlatformClassifier:
    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.model = settings.ai_model
        self.client = client or AsyncOpenAI(
            base_url=settings.ai_base_url,
            api_key=settings.ai_api_key,
            timeout=settings.http_client_timeout_long,
            max_retries=0,
        )

    async def detect(self, text: str) -> list[str]:
        if not text.strip():
            return []
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": text},
                ],
            )
        except openai.APIError as e:
            raise ExternalFetchError("classifier", str(e), status_code=getattr(e, "status_code", None)) from e
        content = completion.choices[0].message.content if completion.choices else ""
        return parse_platforms(content or "")

    async def aclose(self) -> None:
        await self.client.close()
