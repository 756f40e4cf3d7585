"""Specialist dispatch and PDF tools."""

from .dispatcher import NO_PDF_MESSAGE, AgentDispatcher
from .pdf_tools import PdfToolset

__all__ = ["AgentDispatcher", "NO_PDF_MESSAGE", "PdfToolset"]
