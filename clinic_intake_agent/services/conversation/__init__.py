"""
Conversation engine: field extraction, handoff policy and orchestration.
"""

from .extractor import ExtractionResult, FieldExtractor
from .handoff import HandoffPolicy, build_handoff_summary
from .orchestrator import ConversationOrchestrator
from .prompts import build_context_block, build_system_prompt

__all__ = [
    "ExtractionResult",
    "FieldExtractor",
    "HandoffPolicy",
    "build_handoff_summary",
    "ConversationOrchestrator",
    "build_context_block",
    "build_system_prompt",
]
