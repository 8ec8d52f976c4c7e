"""Claude API client for note text-assist (summaries and translations)."""

from __future__ import annotations

import logging
import os
from enum import StrEnum
from typing import cast

import anthropic

from glossator.config import get_settings

logger = logging.getLogger(__name__)

SUMMARIZE_PROMPT = (
    "Summarize the following Italian legal text briefly and clearly in Italian:"
    "\n\n{text}"
)
TRANSLATE_PROMPT = (
    "Translate the following Italian legal text to {language}. "
    "Maintain the legal terminology accuracy:\n\n{text}"
)


class AssistAction(StrEnum):
    """Text-assist operations offered when writing a note."""

    SUMMARIZE = "summarize"
    TRANSLATE = "translate"


class TextAssistClient:
    """Client for generating note text with Claude.

    Uses the async Anthropic client for non-blocking API calls.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> None:
        """Initialize the text-assist client.

        Args:
            api_key: Anthropic API key. Falls back to LLM__API_KEY, then
                ANTHROPIC_API_KEY.
            model: Model identifier. Defaults to LLM__MODEL.
            max_tokens: Response token cap. Defaults to LLM__MAX_TOKENS.

        Raises:
            ValueError: If no API key is available.
        """
        llm = get_settings().llm
        self.api_key = (
            api_key
            or llm.api_key.get_secret_value()
            or os.environ.get("ANTHROPIC_API_KEY")
        )
        if not self.api_key:
            msg = "API key required. Set LLM__API_KEY or ANTHROPIC_API_KEY."
            raise ValueError(msg)

        self.model = model or llm.model
        self.max_tokens = max_tokens or llm.max_tokens
        self.default_language = llm.target_language
        self._client = anthropic.AsyncAnthropic(api_key=self.api_key)

    async def generate(self, prompt: str) -> str:
        """Send a single-turn prompt and return the response text.

        Raises:
            ValueError: If Claude returns an empty or non-text response.
        """
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )

        if not response.content:
            raise ValueError("Empty response from Claude API")

        first_block = response.content[0]
        if not isinstance(first_block, anthropic.types.TextBlock):
            raise ValueError(f"Unexpected response type: {first_block.type}")

        return cast("str", first_block.text)

    async def summarize(self, text: str) -> str:
        """Summarize an Italian legal passage in Italian."""
        return await self.generate(SUMMARIZE_PROMPT.format(text=text))

    async def translate(self, text: str, target_lang: str | None = None) -> str:
        """Translate an Italian legal passage, keeping legal terminology."""
        language = target_lang or self.default_language
        prompt = TRANSLATE_PROMPT.format(language=language, text=text)
        return await self.generate(prompt)


async def prefill_note(
    client: TextAssistClient,
    text: str,
    action: AssistAction | str,
    target_lang: str | None = None,
) -> str:
    """Generate an initial note body for a selection.

    Provider failures are logged and yield an empty note, so the editor
    always opens.

    Args:
        client: The text-assist client.
        text: The selected text.
        action: ``"summarize"`` or ``"translate"``.
        target_lang: Translation target; defaults to LLM__TARGET_LANGUAGE.

    Returns:
        The generated text, or ``""`` on failure.

    Raises:
        ValueError: If ``action`` is not a known assist action.
    """
    action = AssistAction(action)
    try:
        if action is AssistAction.SUMMARIZE:
            return await client.summarize(text)
        return await client.translate(text, target_lang)
    except (anthropic.APIError, ValueError):
        logger.warning(
            "Text-assist %s failed, leaving note empty", action, exc_info=True
        )
        return ""
