"""Text helpers used for document metadata."""

from __future__ import annotations

import logging
import re

from langdetect import DetectorFactory, LangDetectException, detect

logger = logging.getLogger(__name__)
DetectorFactory.seed = 0

LANGUAGE_SAMPLE_WORDS = 200

EXTENSION_PATTERN = re.compile(r"\.[^.]+$")


def strip_extension(filename: str) -> str:
    return EXTENSION_PATTERN.sub("", filename)


def title_from_filename(filename: str) -> str:
    """``quarterly_budget-2024.pdf`` -> ``Quarterly Budget 2024``."""
    with_spaces = re.sub(r"[-_]", " ", strip_extension(filename))
    return " ".join(word[:1].upper() + word[1:].lower() for word in with_spaces.split(" "))


def detect_language(text: str) -> str:
    """ISO 639-1 code of the first words of ``text``; ``unknown`` when undecidable."""
    sample = " ".join(text.split()[:LANGUAGE_SAMPLE_WORDS])
    if not sample:
        return "unknown"
    try:
        return detect(sample)
    except LangDetectException:
        logger.info("Unable to determine language for text of length %s", len(text))
        return "unknown"


def generate_summary(text: str, max_words: int = 200) -> str:
    words = text.split()
    summary = " ".join(words[:max_words])
    if len(words) > max_words:
        summary += "..."
    return summary


def truncate(text: str, limit: int, suffix: str = "...") -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + suffix
