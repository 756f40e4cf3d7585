"""Routing tables and display metadata for each specialist.

Everything here is plain data: the router reads it and never mutates it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Pattern, Tuple

from docassist.models.agent import AgentKind, AgentStatus


@dataclass(frozen=True)
class AgentProfile:
    name: str
    display_name: str
    description: str
    keywords: Tuple[str, ...] = ()
    patterns: Tuple[Pattern[str], ...] = ()
    temperature: float = 0.3
    max_turns: int = 3


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


AGENT_PROFILES: Dict[AgentKind, AgentProfile] = {
    AgentKind.DIRECT: AgentProfile(
        name="Orchestrator",
        display_name="Thinking...",
        description="Answers general requests without a specialist",
        temperature=0.3,
        max_turns=3,
    ),
    AgentKind.SPREADSHEET: AgentProfile(
        name="ExcelAgent",
        display_name="Creating spreadsheet...",
        description="Specialist for spreadsheet creation and manipulation",
        keywords=(
            "excel",
            "spreadsheet",
            "hoja de cálculo",
            "tabla",
            "datos",
            "fórmula",
            "celda",
            "columna",
            "fila",
            "csv",
            "ordenar",
            "filtrar",
            "suma",
            "promedio",
            "gráfico de datos",
        ),
        patterns=_compile(
            r"crea(?:r)?\s+(?:una?\s+)?(?:hoja|tabla|spreadsheet)",
            r"(?:analiza|calcula|suma|promedia)",
            r"formato\s+(?:de\s+)?(?:celda|número|moneda)",
        ),
        temperature=0.2,
        max_turns=15,
    ),
    AgentKind.PDF: AgentProfile(
        name="PDFAgent",
        display_name="Analyzing PDF...",
        description="Specialist for PDF analysis and citation",
        keywords=(
            "pdf",
            "página",
            "citar",
            "documento cargado",
            "buscar en el",
            "encontrar en el",
            "dice el documento",
            "según el documento",
            "en el archivo",
        ),
        patterns=_compile(
            r"(?:busca|encuentra|qué dice)\s+(?:en\s+)?(?:el\s+)?(?:pdf|documento)",
            r"(?:resume|resumen)\s+(?:del?\s+)?(?:pdf|documento)",
            r"página\s+\d+",
            r"(?:de acuerdo|según)\s+(?:con\s+)?(?:el\s+)?(?:pdf|documento)",
        ),
        temperature=0.3,
        max_turns=10,
    ),
    AgentKind.DOCS: AgentProfile(
        name="DocsAgent",
        display_name="Writing document...",
        description="Specialist for document creation and editing",
        keywords=(
            "documento",
            "informe",
            "propuesta",
            "ensayo",
            "escribir",
            "redactar",
            "investigar",
            "artículo",
            "manual",
            "guía",
            "reporte",
            "carta",
            "memo",
            "texto",
        ),
        patterns=_compile(
            r"(?:escribe|redacta|genera|crea)\s+(?:un\s+)?(?:documento|informe|propuesta|ensayo)",
            r"investiga\s+(?:sobre|acerca)",
            r"(?:actualiza|edita)\s+el\s+documento",
        ),
        temperature=0.5,
        max_turns=10,
    ),
    AgentKind.CHART: AgentProfile(
        name="ChartAgent",
        display_name="Creating chart...",
        description="Specialist for data visualization",
        keywords=("gráfico", "chart", "visualización", "diagrama", "barras", "líneas", "pastel", "pie"),
        patterns=_compile(
            r"(?:crea|genera|dibuja)\s+(?:un\s+)?(?:gráfico|chart|diagrama)",
            r"visualiza(?:r)?\s+(?:los\s+)?datos",
        ),
        temperature=0.3,
        max_turns=5,
    ),
    AgentKind.RESEARCH: AgentProfile(
        name="ResearchAgent",
        display_name="Researching...",
        description="Specialist for web research and information gathering",
        keywords=(
            "busca en internet",
            "investiga",
            "busca información",
            "qué es",
            "quién es",
            "cuándo",
            "dónde",
        ),
        patterns=_compile(
            r"busca(?:r)?\s+(?:en\s+)?(?:internet|web|google)",
            r"investiga(?:r)?\s+(?:sobre|acerca)",
            r"(?:qué|quién|cuándo|dónde|cómo)\s+(?:es|fue|será)",
        ),
        temperature=0.5,
        max_turns=5,
    ),
}

# Specialists tried after the PDF checks, in order.
CORE_ROUTE_ORDER: Tuple[AgentKind, ...] = (AgentKind.SPREADSHEET, AgentKind.DOCS)
EXTENDED_ROUTE_ORDER: Tuple[AgentKind, ...] = (AgentKind.CHART, AgentKind.RESEARCH)

# Keywords that stop an open question from defaulting to the loaded PDF.
COMPETING_KEYWORD_AGENTS: Tuple[AgentKind, ...] = (
    AgentKind.SPREADSHEET,
    AgentKind.DOCS,
    AgentKind.CHART,
)

CONTEXT_TEMPLATE = """
## Current Context
- User: {user_name}
- Timezone: {timezone}
- Date/Time: {date_time}
- Active Artifact: {artifact_name}
- PDF Loaded: {pdf_loaded}
"""


def agent_status_message(agent: AgentKind, status: AgentStatus) -> str:
    if status == AgentStatus.ROUTING:
        return "Thinking..."
    if status == AgentStatus.EXECUTING:
        return AGENT_PROFILES[agent].display_name
    if status == AgentStatus.COMPLETING:
        return "Finishing up..."
    return ""


def format_context_for_agent(
    user_name: Optional[str] = None,
    timezone: Optional[str] = None,
    artifact_name: Optional[str] = None,
    pdf_loaded: bool = False,
    now: Optional[datetime] = None,
) -> str:
    """Render the session facts every specialist prompt starts with."""
    now = now or datetime.now().astimezone()
    return CONTEXT_TEMPLATE.format(
        user_name=user_name or "User",
        timezone=timezone or now.tzname() or "UTC",
        date_time=now.strftime("%Y-%m-%d %H:%M:%S"),
        artifact_name=artifact_name or "None",
        pdf_loaded="Yes" if pdf_loaded else "No",
    )
