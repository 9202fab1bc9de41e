"""Helpers for configuring the OpenAI client and reading its responses."""

from __future__ import annotations

from typing import List

from openai import AsyncOpenAI


def build_openai_client(api_key: str) -> AsyncOpenAI:
    """Create a configured AsyncOpenAI client."""
    return AsyncOpenAI(api_key=api_key)


def extract_output_text(response: object) -> str:
    """Best-effort extraction of text from an OpenAI Responses result."""
    output_text = getattr(response, "output_text", None)
    if isinstance(output_text, str) and output_text.strip():
        return output_text

    collected: List[str] = []
    for item in getattr(response, "output", None) or []:
        for part in getattr(item, "content", None) or []:
            if getattr(part, "type", None) != "output_text":
                continue
            text = getattr(part, "text", None)
            if text:
                collected.append(str(text))
    return "\n".join(collected)
