"""Extract one local file and write its pages as JSON lines."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from docassist.config import settings
from docassist.ingestion.extraction import extract_file
from docassist.models.page import ExtractionFailure

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", type=Path, help="PDF, text or code file to extract")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="JSONL destination (defaults to stdout)",
    )
    parser.add_argument("--max-text-length", type=int, default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    outcome = extract_file(args.path, max_text_length=args.max_text_length)
    if isinstance(outcome, ExtractionFailure):
        logger.error("Extraction failed (%s): %s", outcome.reason.value, outcome.error)
        return 1

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        handle = args.output.open("w", encoding="utf-8")
    else:
        handle = sys.stdout
    try:
        for page in outcome.pages:
            handle.write(json.dumps(page.model_dump(), ensure_ascii=False) + "\n")
    finally:
        if handle is not sys.stdout:
            handle.close()
    logger.info(
        "Wrote %s of %s pages from %s", len(outcome.pages), outcome.page_count, args.path
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
