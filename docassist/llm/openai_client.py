"""Chat completion client used by the agent dispatcher.

Agents only see ``ChatClient``; ``OpenAIChatClient`` backs it with the
OpenAI Responses API and turns SDK failures into ``ChatCompletionError``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, List, Optional, Protocol

from openai import OpenAI, OpenAIError

from docassist.config import settings

logger = logging.getLogger(__name__)

ANSWER_CONTENT_TYPES = {"output_text", "text"}


class ChatCompletionError(RuntimeError):
    """The model could not produce an answer for an agent turn."""


class ChatClient(Protocol):
    """Anything that turns a system prompt and a user prompt into text."""

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_output_tokens: int = 800,
    ) -> str:
        ...


def response_text(response: Any) -> str:
    """Answer text of a Responses API result.

    Prefers the SDK's aggregated ``output_text``; otherwise joins the text
    parts of every output message, which may be objects or plain dicts.
    """
    output_text = getattr(response, "output_text", None)
    if isinstance(output_text, str) and output_text.strip():
        return output_text.strip()
    parts: List[str] = []
    for item in getattr(response, "output", None) or []:
        for content in getattr(item, "content", None) or []:
            if isinstance(content, dict):
                kind, text = content.get("type"), content.get("text")
            else:
                kind, text = getattr(content, "type", None), getattr(content, "text", None)
            if kind in ANSWER_CONTENT_TYPES and text:
                parts.append(str(text).strip())
    return "\n".join(part for part in parts if part)


class OpenAIChatClient:
    """``ChatClient`` over the OpenAI Responses API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ) -> None:
        api_key = api_key or settings.openai_api_key
        if not api_key:
            raise ValueError("OPENAI_API_KEY is not configured in the environment.")
        self.model = model or settings.openai_model_chat
        self.client = OpenAI(api_key=api_key, base_url=base_url or settings.openai_base_url)

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        started = time.perf_counter()
        try:
            response = self.client.responses.create(
                model=self.model,
                temperature=temperature,
                max_output_tokens=max_output_tokens or settings.max_output_tokens,
                input=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except OpenAIError as exc:
            logger.error("OpenAI request to %s failed: %s", self.model, exc)
            raise ChatCompletionError(f"Model {self.model} request failed") from exc

        answer = response_text(response)
        usage = getattr(response, "usage", None)
        logger.info(
            "Model %s answered in %.2fs (input_tokens=%s, output_tokens=%s)",
            self.model,
            time.perf_counter() - started,
            getattr(usage, "input_tokens", None),
            getattr(usage, "output_tokens", None),
        )
        if not answer:
            raise ChatCompletionError(f"Model {self.model} returned no text")
        return answer
