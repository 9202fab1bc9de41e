"""External service clients used by the vocabulary engine."""

from .openai_client import build_openai_client, extract_output_text

__all__ = ["build_openai_client", "extract_output_text"]
