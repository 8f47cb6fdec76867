"""Huntress (security agent) adapter."""

from __future__ import annotations

from .client import HuntressAgentSource, authorization_header, build_huntress_agent_source
from .schema import AgentPayload, IncidentPayload, RemediationPayload
from .translator import extract_collection, parse_agent, parse_agent_snapshot

__all__ = [
    "AgentPayload",
    "HuntressAgentSource",
    "IncidentPayload",
    "RemediationPayload",
    "authorization_header",
    "build_huntress_agent_source",
    "extract_collection",
    "parse_agent",
    "parse_agent_snapshot",
]
