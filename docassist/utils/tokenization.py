"""Helpers for loading tiktoken encodings with operator-controlled fallback."""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import Optional

import tiktoken

from docassist.config import settings

logger = logging.getLogger(__name__)

ENCODING_NAME = "cl100k_base"


def _should_fallback(context: str, reason: Exception) -> bool:
    message = f"Failed to load tiktoken '{ENCODING_NAME}' while {context}. Reason: {reason}"
    if settings.allow_tiktoken_fallback:
        logger.warning(
            "%s. Proceeding with whitespace token approximation because ALLOW_TIKTOKEN_FALLBACK=1.",
            message,
        )
        return True

    if sys.stdin.isatty():
        prompt = (
            f"{message}.\n"
            "Type 'fallback' to continue with approximate whitespace token counts, "
            "or press Enter to abort: "
        )
        choice = input(prompt)
        if choice.strip().lower() in {"fallback", "f", "y", "yes"}:
            logger.warning("Operator approved whitespace token fallback for %s.", context)
            return True
        raise RuntimeError("Operator rejected tiktoken fallback; aborting.")

    raise RuntimeError(
        f"{message}. Rerun with ALLOW_TIKTOKEN_FALLBACK=1 to allow whitespace fallback."
    )


@lru_cache(maxsize=None)
def load_encoding(context: str = "estimating prompt size") -> Optional[tiktoken.Encoding]:
    """Load the OpenAI tokenizer once; ``None`` means whitespace approximation."""
    try:
        return tiktoken.get_encoding(ENCODING_NAME)
    except Exception as exc:
        if _should_fallback(context, exc):
            return None
        raise


def count_tokens(text: str, encoding: Optional[tiktoken.Encoding]) -> int:
    """Count tokens using tiktoken if available, otherwise whitespace approximation."""
    if encoding:
        return len(encoding.encode(text))
    return len(text.split())


def estimate_prompt_tokens(*parts: str) -> int:
    encoding = load_encoding()
    return sum(count_tokens(part, encoding) for part in parts)
