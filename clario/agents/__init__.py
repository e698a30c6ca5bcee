"""AI Agents package."""

from clario.agents.ai_agents import (
    AdvisorAgent,
    ExtractionError,
    TransactionExtractionAgent,
    build_knowledge_base_context,
    build_tax_context,
    to_user_message,
)

__all__ = [
    "AdvisorAgent",
    "ExtractionError",
    "TransactionExtractionAgent",
    "build_knowledge_base_context",
    "build_tax_context",
    "to_user_message",
]
