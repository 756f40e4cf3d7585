"""Message routing to specialists."""

from .agent_table import AGENT_PROFILES, AgentProfile, agent_status_message, format_context_for_agent
from .router import explain_route, route, select_agent

__all__ = [
    "AGENT_PROFILES",
    "AgentProfile",
    "agent_status_message",
    "explain_route",
    "format_context_for_agent",
    "route",
    "select_agent",
]
