"""LLM integration helpers."""

from .openai_client import ChatClient, ChatCompletionError, OpenAIChatClient, response_text
from .prompts import build_pdf_instructions, build_system_prompt, build_user_prompt

__all__ = [
    "ChatClient",
    "ChatCompletionError",
    "OpenAIChatClient",
    "build_pdf_instructions",
    "build_system_prompt",
    "build_user_prompt",
    "response_text",
]
