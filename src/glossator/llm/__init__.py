"""LLM-backed text-assist for annotation notes."""

from glossator.llm.assist import AssistAction, TextAssistClient, prefill_note

__all__ = ["AssistAction", "TextAssistClient", "prefill_note"]
