"""
Post-conversion agent stages.
"""

from .base import AgentMetrics, AgentName, AgentResult, AgentStatus, BaseAgent
from .prior_auth import PriorAuthAgent
from .summarizer import SummarizerAgent
from .compliance import ComplianceAgent
from .pipeline import AgentPipeline, PipelineCancelled, default_agents

__all__ = [
    "AgentMetrics",
    "AgentName",
    "AgentResult",
    "AgentStatus",
    "BaseAgent",
    "PriorAuthAgent",
    "SummarizerAgent",
    "ComplianceAgent",
    "AgentPipeline",
    "PipelineCancelled",
    "default_agents",
]
