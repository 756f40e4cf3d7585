from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

import pytest

from docassist.ingestion.extraction import Extraction
from docassist.ingestion.pdf_context import PdfContextService
from docassist.models.page import ExtractionFailure, ExtractionResult, FailureReason
from docassist.storage.cache import TTLCache

from conftest import make_pages, make_pdf


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _result(text: str = "cached page") -> ExtractionResult:
    pages = make_pages(text)
    return ExtractionResult(merged_content=text, pages=pages, page_count=1)


def test_cache_entries_expire() -> None:
    clock = FakeClock()
    cache: TTLCache[str, int] = TTLCache(10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2, ttl=30)

    clock.now = 15

    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert len(cache) == 1
    assert "b" in cache


def test_cache_invalidate_and_clear() -> None:
    cache: TTLCache[str, int] = TTLCache(60)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.invalidate("a")
    assert not cache.invalidate("a")
    cache.clear()
    assert len(cache) == 0


def test_cache_rejects_non_positive_ttl() -> None:
    with pytest.raises(ValueError):
        TTLCache(0)


def test_load_extracts_once_then_uses_cache() -> None:
    calls: List[bytes] = []

    async def extractor(data: bytes, mime_type: Optional[str]) -> Extraction:
        calls.append(data)
        return _result()

    service = PdfContextService(extractor=extractor)

    async def scenario() -> None:
        first = await service.load_from_bytes("c1", "report.pdf", b"pdf")
        second = await service.load_from_bytes("c1", "report.pdf", b"pdf")
        assert first == second

    asyncio.run(scenario())
    assert len(calls) == 1
    assert service.get_pages("c1")[0].content == "cached page"


def test_concurrent_loads_share_one_extraction() -> None:
    calls: List[bytes] = []

    async def extractor(data: bytes, mime_type: Optional[str]) -> Extraction:
        calls.append(data)
        await asyncio.sleep(0.01)
        return _result()

    service = PdfContextService(extractor=extractor)

    async def scenario():
        return await asyncio.gather(
            service.load_from_bytes("c1", "report.pdf", b"pdf"),
            service.load_from_bytes("c1", "report.pdf", b"pdf"),
        )

    first, second = asyncio.run(scenario())

    assert len(calls) == 1
    assert first == second
    assert first is not None


def test_new_source_replaces_cached_pages() -> None:
    async def extractor(data: bytes, mime_type: Optional[str]) -> Extraction:
        return _result(data.decode())

    service = PdfContextService(extractor=extractor)

    async def scenario() -> None:
        await service.load_from_bytes("c1", "a.pdf", b"first")
        await service.load_from_bytes("c1", "b.pdf", b"second")

    asyncio.run(scenario())
    loaded = service.get("c1")
    assert loaded is not None
    assert loaded.source == "b.pdf"
    assert loaded.pages[0].content == "second"


def test_failed_extraction_is_not_cached() -> None:
    async def extractor(data: bytes, mime_type: Optional[str]) -> Extraction:
        return ExtractionFailure(reason=FailureReason.NO_TEXT, error="empty")

    service = PdfContextService(extractor=extractor)

    assert asyncio.run(service.load_from_bytes("c1", "scan.pdf", b"x")) is None
    assert service.get("c1") is None


def test_real_pdf_loaded_from_path(tmp_path: Path) -> None:
    path = tmp_path / "memo.pdf"
    path.write_bytes(make_pdf(["Memo body", "Second sheet"]))
    service = PdfContextService()

    pages = asyncio.run(service.load_from_path("c1", path))

    assert pages is not None
    assert [page.page_number for page in pages] == [1, 2]
    assert service.get("c1").source == str(path)


def test_missing_path_yields_none(tmp_path: Path) -> None:
    service = PdfContextService()
    assert asyncio.run(service.load_from_path("c1", tmp_path / "nope.pdf")) is None


def test_cached_pages_expire() -> None:
    clock = FakeClock()
    service = PdfContextService(cache=TTLCache(1800, clock=clock))
    service.prime("c1", "report.pdf", make_pages("body"))

    assert service.get_pages("c1")
    clock.now = 1801
    assert service.get_pages("c1") == []


def test_clear_drops_pages() -> None:
    service = PdfContextService()
    service.prime("c1", "report.pdf", make_pages("body"))

    service.clear("c1")

    assert service.get("c1") is None


def test_cancel_abandons_in_flight_load() -> None:
    async def scenario():
        started = asyncio.Event()

        async def extractor(data: bytes, mime_type: Optional[str]) -> Extraction:
            started.set()
            await asyncio.sleep(10)
            return _result()

        service = PdfContextService(extractor=extractor)
        loader = asyncio.ensure_future(service.load_from_bytes("c1", "big.pdf", b"x"))
        await started.wait()
        cancelled = service.cancel("c1")
        result = await loader
        return service, cancelled, result

    service, cancelled, result = asyncio.run(scenario())

    assert cancelled == 1
    assert result is None
    assert service.get("c1") is None
