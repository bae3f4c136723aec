"""
Archie Flow Prompts.

Exports the default template registry used to construct the PromptService,
plus prompt building functions.
"""
from ..config import ANALYSIS_AGENT, CONTEXT_BUILDING_AGENT, EXTRACTION_AGENT
from .analysis import (
    BASE_SYSTEM_PROMPT,
    FINAL_TEMPLATE,
    FOLLOWUP_TEMPLATE,
    INITIAL_TEMPLATE,
    build_system_prompt,
)
from .context_building import CONTEXT_BUILD_TEMPLATE
from .extraction import EXTRACTION_TEMPLATE

DEFAULT_PROMPTS = {
    (ANALYSIS_AGENT, "initial"): INITIAL_TEMPLATE,
    (ANALYSIS_AGENT, "followup"): FOLLOWUP_TEMPLATE,
    (ANALYSIS_AGENT, "final"): FINAL_TEMPLATE,
    (CONTEXT_BUILDING_AGENT, "context_build"): CONTEXT_BUILD_TEMPLATE,
    (EXTRACTION_AGENT, "extract"): EXTRACTION_TEMPLATE,
}

__all__ = [
    "DEFAULT_PROMPTS",
    "BASE_SYSTEM_PROMPT",
    "build_system_prompt",
]
