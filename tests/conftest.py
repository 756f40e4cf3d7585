"""Shared fixtures: in-process PDFs, page builders and an offline tokenizer."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import fitz
import pytest

from docassist.models.page import PageContent
from docassist.utils import tokenization


def make_pdf(page_texts: Sequence[Optional[str]]) -> bytes:
    """Build a PDF with one page per entry; ``None`` or ``""`` leaves the page blank."""
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def make_pages(*contents: str) -> List[PageContent]:
    return [
        PageContent(page_number=number, content=content)
        for number, content in enumerate(contents, start=1)
    ]


@pytest.fixture
def pdf_factory() -> Callable[[Sequence[Optional[str]]], bytes]:
    return make_pdf


@pytest.fixture(autouse=True)
def offline_tokenizer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tokenization, "load_encoding", lambda *args, **kwargs: None)


class FakeChatClient:
    """Records prompts and returns a canned answer, or raises ``error``."""

    def __init__(self, answer: str = "ok", error: Optional[Exception] = None) -> None:
        self.answer = answer
        self.error = error
        self.calls: List[dict] = []

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_output_tokens: int = 800,
    ) -> str:
        self.calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
            }
        )
        if self.error is not None:
            raise self.error
        return self.answer
